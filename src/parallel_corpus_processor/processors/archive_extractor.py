"""
Extraction of downloaded gzip-compressed tar archives.
"""
import tarfile
from pathlib import Path
from typing import List, Optional

from ..utils.files import atomic_output, list_regular_files
from ..utils.logging import PipelineLogger

ARCHIVE_SUFFIXES = (".tar.gz", ".tgz")


class ExtractionError(Exception):
    """Raised when an archive cannot be extracted."""
    pass


def archive_suffix(path: Path) -> Optional[str]:
    """The archive suffix of ``path``, or None for non-archive files."""
    name = path.name.lower()
    for suffix in ARCHIVE_SUFFIXES:
        if name.endswith(suffix) and len(name) > len(suffix):
            return suffix
    return None


class ArchiveExtractor:
    """Expands ``.tgz``/``.tar.gz`` files into a directory next to them."""

    def __init__(self, logger: Optional[PipelineLogger] = None):
        self.logger = logger or PipelineLogger()

    def maybe_extract(self, path: Path) -> Path:
        """
        Extract ``path`` if it is an archive.

        The archive is expanded into a sibling directory named after it without
        the archive suffix. An existing directory is reused as is.

        Args:
            path: Downloaded file

        Returns:
            The extracted directory, or ``path`` unchanged if it is not an archive

        Raises:
            ExtractionError: If the archive is corrupt or cannot be read
        """
        path = Path(path)
        suffix = archive_suffix(path)
        if suffix is None:
            return path

        extracted = path.with_name(path.name[:-len(suffix)])
        if extracted.exists():
            return extracted

        self.logger.info(f"Extracting '{path}'.")
        try:
            with atomic_output(extracted) as partial:
                partial.mkdir()
                with tarfile.open(path, "r:gz") as archive:
                    archive.extractall(partial, filter="data")
        except (tarfile.TarError, OSError) as e:
            self.logger.error(f"Could not extract '{path}': {e}")
            raise ExtractionError(f"Could not extract '{path}': {e}") from e

        self.logger.record_extraction(path)
        self.logger.info(f"Extracted '{path}'.")
        return extracted

    def extract(self, path: Path) -> List[Path]:
        """
        Extract ``path`` if needed and list the regular files it provides.

        Returns:
            All regular files under the extracted directory, or ``[path]``
        """
        return list_regular_files(self.maybe_extract(path))
