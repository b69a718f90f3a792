"""
Shared fixtures for the parallel corpus processor tests.
"""
import shutil
from pathlib import Path
from typing import List, Set

import pytest

from parallel_corpus_processor.tools.moses import ToolResult
from parallel_corpus_processor.utils.logging import PipelineLogger


class FakeToolkit:
    """
    Stand-in for the Moses scripts.

    ``sgm_to_text`` strips tags, ``tokenize`` upper-cases every line, and
    ``clean_corpus`` drops pairs whose sides are outside the length bounds.
    Tools listed in ``failing`` exit with status 1 without writing output.
    """

    def __init__(self, failing: Set[str] = None):
        self.failing = set(failing or ())
        self.calls: List[tuple] = []

    def _fail(self, tool: str):
        return ToolResult(tool, 1, [tool], f"{tool} failed")

    def sgm_to_text(self, input_path: Path, output_path: Path) -> ToolResult:
        self.calls.append(("input-from-sgm", Path(input_path), Path(output_path)))
        if "input-from-sgm" in self.failing:
            return self._fail("input-from-sgm")
        lines = []
        for line in Path(input_path).read_text(encoding="utf-8").splitlines():
            if line.startswith("<seg"):
                lines.append(line[line.index(">") + 1:line.rindex("<")].strip())
        Path(output_path).write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return ToolResult("input-from-sgm", 0, ["input-from-sgm"])

    def tokenize(self, input_path: Path, output_path: Path, language: str) -> ToolResult:
        self.calls.append(("tokenizer", Path(input_path), Path(output_path), language))
        if "tokenizer" in self.failing:
            return self._fail("tokenizer")
        Path(output_path).write_text(Path(input_path).read_text(encoding="utf-8").upper(), encoding="utf-8")
        return ToolResult("tokenizer", 0, ["tokenizer"])

    def clean_corpus(self, corpus_prefix, clean_prefix, source_language, target_language, min_length, max_length):
        self.calls.append(("clean-corpus-n", Path(corpus_prefix), Path(clean_prefix)))
        if "clean-corpus-n" in self.failing:
            return self._fail("clean-corpus-n")

        def side(prefix, language):
            return Path(f"{prefix}.{language}")

        source_lines = side(corpus_prefix, source_language).read_text(encoding="utf-8").splitlines()
        target_lines = side(corpus_prefix, target_language).read_text(encoding="utf-8").splitlines()
        kept = [
            (s, t) for s, t in zip(source_lines, target_lines)
            if min_length <= len(s.split()) <= max_length and min_length <= len(t.split()) <= max_length
        ]
        side(clean_prefix, source_language).write_text("".join(f"{s}\n" for s, _ in kept), encoding="utf-8")
        side(clean_prefix, target_language).write_text("".join(f"{t}\n" for _, t in kept), encoding="utf-8")
        return ToolResult("clean-corpus-n", 0, ["clean-corpus-n"])

    def tool_calls(self, tool: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == tool]


@pytest.fixture
def fake_toolkit():
    return FakeToolkit()


@pytest.fixture
def pipeline_logger():
    return PipelineLogger()


def write_lines(path: Path, lines: List[str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
    return path
