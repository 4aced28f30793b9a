"""Lazy chunked download of a stored object."""

import io
from typing import AsyncIterator, Optional, TYPE_CHECKING

from googleapiclient.http import MediaIoBaseDownload

from ..core.cancellation import CancellationToken, check_cancelled
from ..core.logging import get_logger

if TYPE_CHECKING:
    from .client import AppFolderClient


logger = get_logger(__name__)


class DriveDownloadStream:
    """
    Asynchronous byte stream over a Drive file.

    Nothing is fetched until the stream is iterated; each iteration step
    downloads one chunk and hands it over without keeping it. Every new
    iteration starts a fresh download from the first byte.
    """

    def __init__(
        self,
        client: "AppFolderClient",
        file_id: str,
        chunk_size: int,
        cancel_token: Optional[CancellationToken] = None
    ) -> None:
        self.client = client
        self.file_id = file_id
        self.chunk_size = chunk_size
        self.cancel_token = cancel_token

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self.iter_chunks()

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yield the file content chunk by chunk."""
        buffer = io.BytesIO()
        downloader = MediaIoBaseDownload(
            buffer,
            self.client.get_media_request(self.file_id),
            chunksize=self.chunk_size
        )

        done = False
        while not done:
            check_cancelled(self.cancel_token, "download")
            status, done = await self.client.execute(
                "files.get_media", downloader.next_chunk, file_id=self.file_id
            )
            if status:
                logger.debug(f"Download progress: {int(status.progress() * 100)}%")

            chunk = buffer.getvalue()
            buffer.seek(0)
            buffer.truncate()
            if chunk:
                yield chunk

    async def read(self) -> bytes:
        """Read the whole file into memory."""
        return b"".join([chunk async for chunk in self.iter_chunks()])
