"""
Failure policy shared by the stages that invoke external tools.
"""
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..models.core import ToolFailurePolicy
from ..tools.moses import ToolError, ToolResult
from ..utils.files import copy_through, is_fallback, output_ready, partial_path, publish, remove_path
from ..utils.logging import PipelineLogger


class ToolStage:
    """
    Base for stages that turn input files into outputs through an external tool.

    Tools always write to the ``.partial`` siblings of their outputs. On success
    the partials are published; on failure they are discarded and the policy
    decides between copying the inputs through verbatim and raising
    :class:`ToolError`.
    """

    stage_name = "processing"

    def __init__(
        self,
        toolkit,
        on_tool_failure: ToolFailurePolicy = ToolFailurePolicy.COPY_THROUGH,
        retry_fallbacks: bool = False,
        logger: Optional[PipelineLogger] = None
    ):
        self.toolkit = toolkit
        self.on_tool_failure = ToolFailurePolicy(on_tool_failure)
        self.retry_fallbacks = retry_fallbacks
        self.logger = logger or PipelineLogger()

    def _ready(self, *outputs: Path) -> bool:
        """True if every output exists; warns about reused fallback copies."""
        if not all(output_ready(output, self.retry_fallbacks) for output in outputs):
            return False
        for output in outputs:
            if is_fallback(output):
                self.logger.warning(f"Reusing '{output}', which is an unprocessed fallback copy of its input.")
        return True

    def _finish(
        self,
        result: ToolResult,
        outputs: Sequence[Tuple[Path, Path]]
    ) -> ToolResult:
        """
        Publish tool outputs or apply the failure policy.

        Args:
            result: Outcome of the tool invocation
            outputs: ``(input, output)`` pairs; the tool wrote each output to its partial sibling

        Returns:
            The tool result

        Raises:
            ToolError: If the tool failed and the policy is ABORT
        """
        partials: List[Path] = [partial_path(output) for _, output in outputs]

        if result.success and all(partial.exists() for partial in partials):
            for partial, (_, output) in zip(partials, outputs):
                publish(partial, output)
            return result

        for partial in partials:
            remove_path(partial)

        if result.success:
            # Exit status 0 without the expected output still counts as a failure.
            result = ToolResult(result.tool, -1, result.command, "Tool reported success but produced no output")

        abort = self.on_tool_failure is ToolFailurePolicy.ABORT
        for input_path, output in outputs:
            self.logger.log_tool_failure(
                stage=self.stage_name,
                tool=result.tool,
                exit_code=result.exit_code,
                input_path=input_path,
                output_path=output,
                error_message=result.stderr,
                fallback_applied=not abort
            )

        if abort:
            raise ToolError(result, outputs[0][0])

        for input_path, output in outputs:
            copy_through(input_path, output)
        return result
