"""
Pydantic schemas for the Google Drive application folder.

This module defines the application-facing file identity, the remote
object representation returned by the Drive v2 API, and the credential
bundle every public operation is called with.
"""

from typing import List, Optional, Dict, Any, Callable

from pydantic import BaseModel, Field, ConfigDict, field_validator


# Shared parent marker of the application data container
APP_FOLDER_ID = "appfolder"

# Property key holding the owning folder path of a stored object
PATH_PROPERTY_KEY = "Path"

# Every upload is stored as opaque binary content
BINARY_MIME_TYPE = "application/octet-stream"

PATH_SEPARATOR = "/"


# Receives upload progress as a percentage between 0 and 100
ProgressCallback = Callable[[float], None]


class CredentialBundle(BaseModel):
    """OAuth2 credentials used to derive an authenticated Drive client."""

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(min_length=1, description="OAuth2 client ID")
    client_secret: str = Field(min_length=1, description="OAuth2 client secret")
    refresh_token: str = Field(min_length=1, description="Long-lived refresh token")

    def __repr__(self) -> str:
        return f"CredentialBundle(client_id={self.client_id!r})"

    __str__ = __repr__


class RemoteFile(BaseModel):
    """A file as the application sees it: a name inside a folder path."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="File name without separators")
    folder_path: str = Field(default="", description="Folder path, empty for the root")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject names carrying a path separator."""
        if PATH_SEPARATOR in v:
            raise ValueError(f"File name must not contain '{PATH_SEPARATOR}': {v!r}")
        return v

    @property
    def path(self) -> str:
        """Full path of the file."""
        if not self.folder_path:
            return self.name
        return f"{self.folder_path.rstrip(PATH_SEPARATOR)}{PATH_SEPARATOR}{self.name}"

    @classmethod
    def from_path(cls, path: str) -> "RemoteFile":
        """Split a full ``folder/name`` path into a RemoteFile."""
        folder_path, _, name = path.strip(PATH_SEPARATOR).rpartition(PATH_SEPARATOR)
        return cls(name=name, folder_path=folder_path)


class StoredObject(BaseModel):
    """Google Drive v2 file resource living in the application folder."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(description="File ID assigned by Drive")
    title: str = Field(description="File title")
    parents: List[str] = Field(default_factory=list, description="Parent IDs")
    properties: Dict[str, str] = Field(default_factory=dict, description="Custom properties")
    file_size: Optional[int] = Field(default=None, description="File size in bytes")

    @property
    def folder_path(self) -> str:
        """Folder path recorded at upload time; the root if absent."""
        return self.properties.get(PATH_PROPERTY_KEY, "")

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "StoredObject":
        """Build from a raw Drive v2 file resource."""
        return cls(
            id=item["id"],
            title=item.get("title", ""),
            parents=[parent["id"] for parent in item.get("parents", []) if "id" in parent],
            properties={
                prop["key"]: prop.get("value", "")
                for prop in item.get("properties", [])
                if "key" in prop
            },
            file_size=int(item["fileSize"]) if item.get("fileSize") else None
        )


class FilePage(BaseModel):
    """One page of a files.list response."""

    items: List[StoredObject] = Field(default_factory=list, description="Files on this page")
    next_page_token: Optional[str] = Field(default=None, description="Continuation token")

    @property
    def has_more(self) -> bool:
        return bool(self.next_page_token)


def build_upload_metadata(remote_file: RemoteFile) -> Dict[str, Any]:
    """Drive v2 file body for a new object representing ``remote_file``."""
    return {
        "title": remote_file.name,
        "mimeType": BINARY_MIME_TYPE,
        "parents": [{"id": APP_FOLDER_ID}],
        "properties": [
            {
                "key": PATH_PROPERTY_KEY,
                "value": remote_file.folder_path,
                "visibility": "PRIVATE"
            }
        ]
    }
