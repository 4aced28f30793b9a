"""
Google Drive service layer for the application folder.

This module maps application-level files (a name inside a folder path)
onto the flat application data folder of Google Drive. Folder paths are
kept in a ``Path`` property on every stored object; lookups and listings
query the folder and filter the results client-side.
"""

import asyncio
import io
import posixpath
from contextlib import asynccontextmanager
from typing import List, Dict, Optional, BinaryIO, Callable, AsyncIterator

from ..core.cancellation import CancellationToken, check_cancelled
from ..core.exceptions import RemoteFileNotFoundError, ValidationError
from ..core.logging import get_logger
from ..settings import DriveSettings
from .client import AppFolderClient
from .paths import is_in_path, split_path, normalize_path
from .query import appfolder_query
from .schemas import (
    CredentialBundle, RemoteFile, StoredObject, ProgressCallback,
    build_upload_metadata, PATH_SEPARATOR
)
from .streams import DriveDownloadStream


logger = get_logger(__name__)


ClientFactory = Callable[[CredentialBundle, DriveSettings], AppFolderClient]


class GoogleDriveService:
    """
    Hierarchical file operations on top of the Drive application folder.

    The service keeps no session: unless a client is injected, every call
    builds its own authorized client from the credentials it is given and
    resolves file IDs from scratch.
    """

    def __init__(
        self,
        settings: DriveSettings,
        client: Optional[AppFolderClient] = None,
        client_factory: Optional[ClientFactory] = None,
        serialize_writes: Optional[bool] = None
    ) -> None:
        """
        Initialize the Drive service.

        Args:
            settings: Drive settings
            client: Long-lived client used for every call instead of a fresh one
            client_factory: Builds a client from credentials, defaults to
                AppFolderClient.from_credentials
            serialize_writes: Serialize uploads and deletes of the same path
                within this instance, defaults to the setting
        """
        self.settings = settings
        self._client = client
        self._client_factory = client_factory or AppFolderClient.from_credentials
        self.serialize_writes = (
            settings.serialize_writes if serialize_writes is None else serialize_writes
        )
        self._path_locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    async def upload_file(
        self,
        stream: BinaryIO,
        remote_file: RemoteFile,
        credentials: CredentialBundle,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> StoredObject:
        """
        Upload ``stream`` as ``remote_file``, replacing any existing copy.

        The existing object, if one resolves, is deleted before the new one
        is inserted. Concurrent uploads of the same path from separate calls
        are not coordinated unless ``serialize_writes`` is enabled.

        Args:
            stream: Seekable binary stream; its whole content is uploaded
            remote_file: Destination file
            credentials: OAuth2 credential bundle
            progress: Receives the percentage sent after each chunk
            cancel_token: Cooperative cancellation

        Returns:
            The created StoredObject

        Raises:
            ValidationError: If the stream length cannot be determined
            OperationCancelledError: If cancelled before the insert completes
            TransportError: If a Drive call fails
        """
        length = _stream_length(stream)

        async with self._write_lock(remote_file):
            client = await self._create_client(credentials)

            await self._try_delete_file(remote_file, client, cancel_token)

            metadata = build_upload_metadata(remote_file)
            logger.info(f"Uploading {remote_file.path} ({length} bytes)")
            return await client.insert(metadata, stream, length, progress, cancel_token)

    async def delete_file(
        self,
        remote_file: RemoteFile,
        credentials: CredentialBundle,
        cancel_token: Optional[CancellationToken] = None
    ) -> None:
        """
        Delete ``remote_file``.

        Raises:
            RemoteFileNotFoundError: If no stored object resolves for the file
        """
        async with self._write_lock(remote_file):
            client = await self._create_client(credentials)
            await self._delete_file(remote_file, client, cancel_token)

    async def get_file(
        self,
        remote_file: RemoteFile,
        credentials: CredentialBundle,
        cancel_token: Optional[CancellationToken] = None
    ) -> DriveDownloadStream:
        """
        Open ``remote_file`` for streaming download.

        The file is resolved immediately; content is fetched lazily as the
        returned stream is iterated.

        Raises:
            RemoteFileNotFoundError: If no stored object resolves for the file
        """
        client = await self._create_client(credentials)
        file_id = await self._find_file_id(remote_file, client, cancel_token)

        return DriveDownloadStream(
            client,
            file_id,
            chunk_size=self.settings.download_chunk_size,
            cancel_token=cancel_token
        )

    async def list_folder(
        self,
        folder_path: str,
        credentials: CredentialBundle,
        cancel_token: Optional[CancellationToken] = None
    ) -> List[RemoteFile]:
        """
        List every file in ``folder_path`` and its descendants.

        Results keep the order Drive returned them in.
        """
        client = await self._create_client(credentials)
        files = await self._get_all_files(appfolder_query(), client, cancel_token)

        listing = []
        for file in files:
            if not is_in_path(file.folder_path, folder_path):
                continue

            name = posixpath.basename(file.title)
            if not name:
                logger.debug(f"Skipping file without a usable title: {file.id}")
                continue

            listing.append(RemoteFile(name=name, folder_path=file.folder_path))

        logger.info(f"Listed {len(listing)} files under '{folder_path}'")
        return listing

    async def resolve(
        self,
        remote_file: RemoteFile,
        credentials: CredentialBundle,
        cancel_token: Optional[CancellationToken] = None
    ) -> str:
        """
        Find the Drive file ID stored for ``remote_file``.

        Raises:
            RemoteFileNotFoundError: If no stored object resolves for the file
        """
        client = await self._create_client(credentials)
        return await self._find_file_id(remote_file, client, cancel_token)

    async def _create_client(self, credentials: CredentialBundle) -> AppFolderClient:
        if self._client is not None:
            return self._client
        # Building the service parses the discovery document; keep it off the loop
        return await asyncio.to_thread(self._client_factory, credentials, self.settings)

    async def _find_file_id(
        self,
        remote_file: RemoteFile,
        client: AppFolderClient,
        cancel_token: Optional[CancellationToken]
    ) -> str:
        """
        Resolve a file by title, then by folder path.

        Titles are not unique across folders, so candidates are filtered by
        their stored path. A candidate stored below the requested folder
        also matches; the first match in listing order wins.
        """
        query = appfolder_query(title=remote_file.name)
        matching_files = await self._get_all_files(query, client, cancel_token)

        file = next(
            (f for f in matching_files if is_in_path(f.folder_path, remote_file.folder_path)),
            None
        )

        if file is None:
            raise RemoteFileNotFoundError(
                f"File not found: {remote_file.path}",
                name=remote_file.name,
                folder_path=remote_file.folder_path
            )

        if len(split_path(file.folder_path)) > len(split_path(remote_file.folder_path)):
            logger.warning(
                f"Resolved {remote_file.path} to {file.id} stored in nested folder '{file.folder_path}'"
            )

        return file.id

    async def _get_all_files(
        self,
        query: str,
        client: AppFolderClient,
        cancel_token: Optional[CancellationToken]
    ) -> List[StoredObject]:
        """Drain every page of ``query``."""
        result: List[StoredObject] = []
        page_token: Optional[str] = None

        while True:
            check_cancelled(cancel_token, "listing")
            page = await client.list_page(query, page_token)
            result.extend(page.items)

            if not page.has_more:
                break
            page_token = page.next_page_token

        return result

    async def _delete_file(
        self,
        remote_file: RemoteFile,
        client: AppFolderClient,
        cancel_token: Optional[CancellationToken]
    ) -> None:
        file_id = await self._find_file_id(remote_file, client, cancel_token)
        check_cancelled(cancel_token, "delete")
        await client.delete(file_id)

    async def _try_delete_file(
        self,
        remote_file: RemoteFile,
        client: AppFolderClient,
        cancel_token: Optional[CancellationToken]
    ) -> None:
        try:
            await self._delete_file(remote_file, client, cancel_token)
            logger.info(f"Deleted existing copy of {remote_file.path} before upload")
        except RemoteFileNotFoundError:
            logger.debug(f"No existing copy of {remote_file.path} to replace")

    @asynccontextmanager
    async def _write_lock(self, remote_file: RemoteFile) -> AsyncIterator[None]:
        if not self.serialize_writes:
            yield
            return

        key = f"{normalize_path(remote_file.folder_path)}{PATH_SEPARATOR}{remote_file.name}"
        lock = self._path_locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            # Drop the lock once nobody holds or waits on it
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._path_locks[key]


def _stream_length(stream: BinaryIO) -> int:
    """Total length of a seekable stream; the position is reset to the start."""
    seekable = getattr(stream, "seekable", None)
    if seekable is None or not seekable():
        raise ValidationError(
            "Upload stream must be seekable so its length is known up front",
            field_name="stream"
        )

    length = stream.seek(0, io.SEEK_END)
    stream.seek(0)
    return length
