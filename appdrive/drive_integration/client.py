"""
Google Drive API client for the application folder.

This module provides a thin asynchronous wrapper around the Drive v2
``files`` resource: paged listing, chunked download, resumable insert and
delete. Blocking googleapiclient calls run in worker threads.
"""

import asyncio
import time
from typing import Optional, Dict, Any, BinaryIO, Callable

import httplib2
from google.auth.exceptions import RefreshError, TransportError as AuthTransportError
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from ..core.cancellation import CancellationToken, check_cancelled
from ..core.exceptions import TransportError, AuthenticationError
from ..core.logging import get_logger, log_api_call
from ..settings import DriveSettings
from .auth import create_credentials, build_drive_service
from .schemas import (
    CredentialBundle, StoredObject, FilePage, ProgressCallback, BINARY_MIME_TYPE
)


logger = get_logger(__name__)


FILE_FIELDS = "id,title,parents(id),properties(key,value),fileSize"
FILE_LIST_FIELDS = f"nextPageToken,items({FILE_FIELDS})"


class AppFolderClient:
    """
    Google Drive API client bound to one authorized service.

    Every method is a coroutine; API errors are raised as TransportError.
    """

    def __init__(self, service: Any, settings: DriveSettings) -> None:
        """
        Initialize the client.

        Args:
            service: Drive v2 service resource
            settings: Drive settings
        """
        self.service = service
        self.settings = settings

    @classmethod
    def from_credentials(cls, bundle: CredentialBundle, settings: DriveSettings) -> "AppFolderClient":
        """Build a client with a fresh authorized service for ``bundle``."""
        credentials = create_credentials(bundle, settings)
        service = build_drive_service(credentials, settings)
        logger.debug(f"Created Drive client for {bundle.client_id}")
        return cls(service, settings)

    async def execute(
        self,
        method: str,
        func: Callable[[], Any],
        file_id: Optional[str] = None
    ) -> Any:
        """
        Run a blocking API call in a worker thread and translate its errors.

        Raises:
            AuthenticationError: If the access token cannot be refreshed
            TransportError: If the request fails
        """
        start_time = time.monotonic()

        try:
            result = await asyncio.to_thread(func)
        except HttpError as e:
            status_code = e.resp.status if e.resp is not None else None
            log_api_call("drive", method, status_code=status_code,
                         response_time=time.monotonic() - start_time, file_id=file_id)
            raise TransportError(
                f"Google Drive {method} failed: {e}",
                drive_error=str(e),
                status_code=status_code,
                file_id=file_id
            ) from e
        except RefreshError as e:
            logger.error(f"Failed to refresh Google Drive credentials: {e}")
            raise AuthenticationError(
                f"Failed to refresh Google Drive credentials: {e}",
                service="Google Drive",
                auth_type="OAuth2 Refresh"
            ) from e
        except (AuthTransportError, httplib2.HttpLib2Error, OSError) as e:
            logger.error(f"Google Drive {method} transport failure: {e}")
            raise TransportError(
                f"Google Drive {method} failed: {e}",
                drive_error=str(e),
                file_id=file_id
            ) from e

        log_api_call("drive", method, response_time=time.monotonic() - start_time, file_id=file_id)
        return result

    async def list_page(self, query: str, page_token: Optional[str] = None) -> FilePage:
        """
        Fetch a single page of files matching ``query``.

        Args:
            query: Drive search query
            page_token: Continuation token from the previous page

        Returns:
            FilePage with the files and the next page token
        """
        params: Dict[str, Any] = {"q": query, "fields": FILE_LIST_FIELDS}
        if page_token:
            params["pageToken"] = page_token

        request = self.service.files().list(**params)
        result = await self.execute("files.list", request.execute)

        return FilePage(
            items=[StoredObject.from_api(item) for item in result.get("items", [])],
            next_page_token=result.get("nextPageToken") or None
        )

    def get_media_request(self, file_id: str) -> Any:
        """Media request for downloading ``file_id``."""
        return self.service.files().get_media(fileId=file_id)

    async def insert(
        self,
        metadata: Dict[str, Any],
        stream: BinaryIO,
        length: int,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> StoredObject:
        """
        Upload ``stream`` as a new file using a resumable session.

        The file only becomes visible once the last chunk is accepted, so a
        cancelled upload leaves nothing behind.

        Args:
            metadata: Drive v2 file body
            stream: Seekable binary stream, uploaded from offset 0
            length: Total number of bytes in ``stream``
            progress: Receives the percentage sent after each chunk
            cancel_token: Checked before every chunk

        Returns:
            The created StoredObject

        Raises:
            OperationCancelledError: If cancelled before the last chunk
            TransportError: If a chunk upload fails
        """
        media = MediaIoBaseUpload(
            stream,
            mimetype=BINARY_MIME_TYPE,
            chunksize=self.settings.upload_chunk_size,
            resumable=True
        )
        request = self.service.files().insert(body=metadata, media_body=media, fields=FILE_FIELDS)

        response = None
        while response is None:
            check_cancelled(cancel_token, "upload")
            status, response = await self.execute("files.insert", request.next_chunk)
            if status is not None and progress and length > 0:
                progress(status.resumable_progress / length * 100)

        if progress:
            progress(100.0)

        stored = StoredObject.from_api(response)
        logger.info(f"Uploaded {stored.title} ({length} bytes, ID: {stored.id})")
        return stored

    async def delete(self, file_id: str) -> None:
        """Permanently delete ``file_id``."""
        request = self.service.files().delete(fileId=file_id)
        await self.execute("files.delete", request.execute, file_id=file_id)
        logger.info(f"Deleted file: {file_id}")
