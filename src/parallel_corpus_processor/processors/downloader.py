"""
Idempotent downloader for remote corpus files.
"""
import time
from pathlib import Path
from typing import Optional

import requests

from ..utils.files import atomic_output
from ..utils.logging import PipelineLogger


class DownloadError(Exception):
    """Raised when a remote resource cannot be fetched."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"Could not download file '{url}': {message}")


class Downloader:
    """
    Fetches a URL to a local path exactly once.

    An existing destination short-circuits without any network access. Data is
    streamed into a temporary sibling and only renamed to the destination once
    complete, so an interrupted transfer never leaves a file there.
    """

    def __init__(
        self,
        chunk_size: int = 8192,
        progress_interval: float = 10.0,
        timeout: float = 60.0,
        logger: Optional[PipelineLogger] = None
    ):
        """
        Initialize the downloader.

        Args:
            chunk_size: Number of bytes to read per chunk
            progress_interval: Minimum number of seconds between progress messages
            timeout: Socket timeout in seconds for each request
            logger: Observer handle for progress and statistics
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

        self.chunk_size = chunk_size
        self.progress_interval = progress_interval
        self.timeout = timeout
        self.logger = logger or PipelineLogger()

    def fetch(self, url: str, destination: Path, chunk_size: Optional[int] = None) -> bool:
        """
        Download ``url`` to ``destination`` unless it already exists.

        Args:
            url: Remote resource to fetch
            destination: Local path to write to
            chunk_size: Overrides the configured chunk size for this call

        Returns:
            True if a download occurred, False if the destination already existed

        Raises:
            DownloadError: If the transfer fails for any reason
        """
        destination = Path(destination)
        if destination.exists():
            return False

        chunk_size = chunk_size or self.chunk_size
        self.logger.info(f"Downloading file '{url}'.")

        try:
            with atomic_output(destination) as partial:
                num_bytes = self._stream(url, partial, chunk_size)
        except requests.RequestException as e:
            self.logger.error(f"Could not download file '{url}': {e}")
            raise DownloadError(url, str(e)) from e
        except OSError as e:
            self.logger.error(f"Could not write '{destination}' while downloading '{url}': {e}")
            raise DownloadError(url, str(e)) from e

        self.logger.record_download(url, num_bytes)
        self.logger.info(f"Downloaded file '{url}'.")
        return True

    def _stream(self, url: str, path: Path, chunk_size: int) -> int:
        response = requests.get(url, stream=True, timeout=self.timeout)
        try:
            response.raise_for_status()
            content_length = self._content_length(response)

            progress = 0
            last_report = time.monotonic()
            with open(path, "wb") as f:
                # Raw bytes, so a Content-Encoding is kept as served.
                for chunk in response.raw.stream(chunk_size, decode_content=False):
                    if not chunk:
                        continue
                    f.write(chunk)
                    progress += len(chunk)

                    now = time.monotonic()
                    if now - last_report >= self.progress_interval:
                        self.logger.info(self._progress_message(progress, content_length))
                        last_report = now
        finally:
            response.close()

        if content_length is not None and progress < content_length:
            raise requests.RequestException(
                f"incomplete transfer, expected {content_length} bytes but received {progress}"
            )
        return progress

    @staticmethod
    def _content_length(response) -> Optional[int]:
        value = response.headers.get("content-length")
        try:
            length = int(value)
        except (TypeError, ValueError):
            return None
        return length if length > 0 else None

    @staticmethod
    def _progress_message(progress: int, content_length: Optional[int]) -> str:
        if content_length is None:
            return f"{progress} bytes downloaded."
        num_bars = min(10, (10 * progress) // content_length)
        return f"[{'=' * num_bars}{' ' * (10 - num_bars)}] {progress} / {content_length} bytes downloaded."
