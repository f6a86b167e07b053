"""HTTP implementation of the Downloader port."""

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import AsyncGenerator, Generator

import httpx
from tqdm import tqdm

from ..application.domain import DownloadedFile, Downloader
from ..application.exceptions import FetchError, NetworkError


class HttpDownloader(Downloader):
    """A downloader that fetches dataset files via HTTP atomically."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: float,
        chunk_size: int,
        max_redirects: int = 5,
        show_progress: bool = True,
    ):
        """Initializes the downloader adapter."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.client = client
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.max_redirects = max_redirects
        self.show_progress = show_progress

    @contextlib.contextmanager
    def _atomic_target(self, destination: Path) -> Generator[Path, None, None]:
        """Provides a temporary '.part' path and ensures cleanup."""
        part_path = destination.with_suffix(destination.suffix + ".part")
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            yield part_path
        finally:
            part_path.unlink(missing_ok=True)

    async def _stream_chunks(
        self, response: httpx.Response, target_file: Path,
    ):
        """Produce byte chunks from a response and write them to a file."""
        with open(target_file, "wb") as f:
            async for chunk in response.aiter_bytes(self.chunk_size):
                await asyncio.to_thread(f.write, chunk)
                yield len(chunk)

    async def _consume_stream_with_progress(
        self,
        stream: AsyncGenerator[int, None],
        total_size: int,
        desc: str,
    ):
        """Consume the byte stream to update a TQDM progress bar."""

        received = 0
        with tqdm(
            total=total_size or None,
            unit="B",
            unit_scale=True,
            desc=desc,
            disable=not self.show_progress,
        ) as progress_bar:
            async for progress in stream:
                received += progress
                progress_bar.update(progress)

        if total_size != 0 and received != total_size:
            raise NetworkError(
                f"Incomplete download: {received} != {total_size} bytes"
            )

    async def _stream_from_network(self, url: str, target_file: Path) -> str:
        """
        Follow redirects up to the configured bound and stream the final
        response body into target_file. Returns the URL finally served.
        """
        for _ in range(self.max_redirects + 1):
            async with self.client.stream(
                "GET", url, timeout=self.timeout, follow_redirects=False
            ) as response:
                location = response.headers.get("Location")
                if 300 <= response.status_code < 400 and location:
                    url = str(response.url.join(location))
                    self.logger.info(f"Redirecting to: {url}")
                    continue

                if not response.is_success:
                    raise FetchError(
                        response.status_code, url, response.reason_phrase
                    )

                total_size = 0
                if "Content-Encoding" not in response.headers:
                    total_size = int(response.headers.get("Content-Length", 0))

                stream = self._stream_chunks(response, target_file)
                await self._consume_stream_with_progress(
                    stream, total_size, target_file.name
                )
                return url

        raise NetworkError(
            f"Too many redirects (more than {self.max_redirects}) "
            f"while fetching {url}"
        )

    async def download(self, url: str, destination: Path) -> DownloadedFile:
        """
        Download a dataset file, replacing any previous copy atomically.

        This is the public method that fulfills the Downloader port contract.
        The body is streamed into a '.part' file that is renamed over the
        destination only once complete; a failed download leaves no
        partial file behind.

        Args:
            url: The dataset URL.
            destination: The final desired path for the file.

        Returns:
            A DownloadedFile object representing the file on disk.

        Raises:
            FetchError: If the server answers with a non-success status.
            NetworkError: On transport failures, timeouts, redirect loops,
                          or truncated bodies.
        """

        self.logger.info(f"Downloading: {url}")
        try:
            with self._atomic_target(destination) as part_path:
                final_url = await self._stream_from_network(url, part_path)
                part_path.replace(destination)
        except httpx.HTTPError as e:
            raise NetworkError(
                f"Network error fetching {url}: {type(e).__name__}: {e}"
            ) from e

        self.logger.info(f"Downloaded: {destination.name}")
        return DownloadedFile(path=destination, url=final_url)
