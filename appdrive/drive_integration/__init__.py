"""Google Drive application folder integration."""

from .client import AppFolderClient
from .service import GoogleDriveService
from .schemas import RemoteFile, StoredObject, CredentialBundle, FilePage
from .streams import DriveDownloadStream
from .auth import DriveAuthenticator

__all__ = [
    "AppFolderClient",
    "GoogleDriveService",
    "RemoteFile",
    "StoredObject",
    "CredentialBundle",
    "FilePage",
    "DriveDownloadStream",
    "DriveAuthenticator"
]
