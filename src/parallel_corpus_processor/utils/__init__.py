"""
Utility functions and helpers.
"""

from .logging import (
    PipelineLogger,
    ToolFailure,
    PipelineStats,
    FailureReport,
    setup_logging
)

__all__ = [
    "PipelineLogger",
    "ToolFailure",
    "PipelineStats",
    "FailureReport",
    "setup_logging"
]
