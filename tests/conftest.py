"""
Pytest configuration and fixtures for AppDrive tests.
"""

import itertools
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List, Optional
import tempfile

import pytest

from appdrive.core.cancellation import check_cancelled
from appdrive.core.exceptions import TransportError
from appdrive.drive_integration.schemas import (
    CredentialBundle, FilePage, StoredObject, APP_FOLDER_ID, PATH_PROPERTY_KEY
)
from appdrive.drive_integration.service import GoogleDriveService
from appdrive.settings import DriveSettings


class FakeAppFolderClient:
    """
    In-memory stand-in for AppFolderClient.

    Lists in insertion order, ``page_size`` files per page, and understands
    the two query shapes the service sends.
    """

    def __init__(self, page_size: int = 100, chunk_size: int = 4) -> None:
        self.page_size = page_size
        self.chunk_size = chunk_size
        self.files: List[StoredObject] = []
        self.contents: Dict[str, bytes] = {}
        self.page_tokens: List[Optional[str]] = []
        self.calls: List[str] = []
        self.on_list_page: Optional[Callable[[int], None]] = None
        self._ids = itertools.count(1)

    def add(self, title: str, folder_path: Optional[str] = "", content: bytes = b"") -> StoredObject:
        """Store a file directly, bypassing insert."""
        properties = {} if folder_path is None else {PATH_PROPERTY_KEY: folder_path}
        stored = StoredObject(
            id=f"file-{next(self._ids)}",
            title=title,
            parents=[APP_FOLDER_ID],
            properties=properties
        )
        self.files.append(stored)
        self.contents[stored.id] = content
        return stored

    def _matches(self, query: str, stored: StoredObject) -> bool:
        marker = " and title = '"
        if marker not in query:
            return True
        literal = query.split(marker, 1)[1][:-1]
        title = literal.replace("\\'", "'").replace("\\\\", "\\")
        return stored.title == title

    async def list_page(self, query: str, page_token: Optional[str] = None) -> FilePage:
        self.calls.append("list")
        self.page_tokens.append(page_token)
        start = int(page_token) if page_token else 0
        matching = [f for f in self.files if self._matches(query, f)]
        page = matching[start:start + self.page_size]
        end = start + self.page_size

        if self.on_list_page is not None:
            self.on_list_page(start // self.page_size)

        return FilePage(items=page, next_page_token=str(end) if end < len(matching) else None)

    async def insert(self, metadata, stream, length, progress=None, cancel_token=None) -> StoredObject:
        self.calls.append("insert")
        data = b""
        while True:
            check_cancelled(cancel_token, "upload")
            chunk = stream.read(self.chunk_size)
            if not chunk:
                break
            data += chunk
            if progress and length:
                progress(len(data) / length * 100)

        if progress:
            progress(100.0)

        properties = {p["key"]: p["value"] for p in metadata["properties"]}
        stored = StoredObject(
            id=f"file-{next(self._ids)}",
            title=metadata["title"],
            parents=[p["id"] for p in metadata["parents"]],
            properties=properties
        )
        self.files.append(stored)
        self.contents[stored.id] = data
        return stored

    async def delete(self, file_id: str) -> None:
        self.calls.append("delete")
        if file_id not in self.contents:
            raise TransportError("File not found", status_code=404, file_id=file_id)
        self.files = [f for f in self.files if f.id != file_id]
        del self.contents[file_id]

    def get_media_request(self, file_id: str) -> bytes:
        return self.contents[file_id]

    async def execute(self, method: str, func: Callable[[], Any], file_id: Optional[str] = None) -> Any:
        self.calls.append(method)
        return func()


class FakeDownloadStatus:
    def __init__(self, received: int, total: int) -> None:
        self.received = received
        self.total = total

    def progress(self) -> float:
        return self.received / self.total if self.total else 1.0


class FakeMediaDownload:
    """Replaces MediaIoBaseDownload; the fake client's media request is the raw content."""

    def __init__(self, fd, request: bytes, chunksize: int = 4) -> None:
        self.fd = fd
        self.content = request
        self.chunksize = chunksize
        self.offset = 0

    def next_chunk(self):
        chunk = self.content[self.offset:self.offset + self.chunksize]
        self.fd.write(chunk)
        self.offset += len(chunk)
        done = self.offset >= len(self.content)
        return FakeDownloadStatus(self.offset, len(self.content)), done


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def drive_settings() -> DriveSettings:
    """Drive settings with test credentials."""
    return DriveSettings(
        client_id="test_client_id",
        client_secret="test_client_secret",
        refresh_token="test_refresh_token",
        download_chunk_size=4
    )


@pytest.fixture
def credentials() -> CredentialBundle:
    return CredentialBundle(
        client_id="test_client_id",
        client_secret="test_client_secret",
        refresh_token="test_refresh_token"
    )


@pytest.fixture
def fake_client() -> FakeAppFolderClient:
    return FakeAppFolderClient()


@pytest.fixture
def service(drive_settings: DriveSettings, fake_client: FakeAppFolderClient) -> GoogleDriveService:
    """Service whose client factory hands out the fake client."""
    return GoogleDriveService(
        drive_settings,
        client_factory=lambda bundle, settings: fake_client
    )


@pytest.fixture
def fake_downloads(monkeypatch) -> None:
    """Route downloads through FakeMediaDownload."""
    monkeypatch.setattr(
        "appdrive.drive_integration.streams.MediaIoBaseDownload", FakeMediaDownload
    )
