"""
External tool wrappers.
"""

from .moses import MosesToolkit, ToolError, ToolResult

__all__ = ["MosesToolkit", "ToolError", "ToolResult"]
