"""
Google Drive authentication module.

This module turns a credential bundle into an authorized Drive v2 service
and runs the interactive OAuth2 flow that produces the refresh token in
the first place. Token refresh itself is left to google-auth.
"""

from pathlib import Path
from typing import Any

import httplib2
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.http import set_user_agent

from ..core.logging import get_logger
from ..core.exceptions import AuthenticationError
from ..settings import DriveSettings
from .schemas import CredentialBundle


logger = get_logger(__name__)


# Google Drive API scopes
SCOPES = [
    'https://www.googleapis.com/auth/drive.appdata',
    'https://www.googleapis.com/auth/drive.file'
]


def create_credentials(bundle: CredentialBundle, settings: DriveSettings) -> Credentials:
    """
    Create refreshable OAuth2 credentials from a bundle.

    No access token is supplied; google-auth fetches one with the refresh
    token on the first request.
    """
    return Credentials(
        token=None,
        refresh_token=bundle.refresh_token,
        token_uri=settings.token_uri,
        client_id=bundle.client_id,
        client_secret=bundle.client_secret,
        scopes=SCOPES
    )


def build_drive_service(credentials: Credentials, settings: DriveSettings) -> Any:
    """
    Build a Drive v2 service on an authorized HTTP transport.

    Args:
        credentials: OAuth2 credentials
        settings: Drive settings providing timeout and user agent

    Returns:
        googleapiclient Resource for the Drive v2 API
    """
    http = AuthorizedHttp(credentials, http=httplib2.Http(timeout=settings.http_timeout))
    http = set_user_agent(http, settings.application_name)

    return build('drive', 'v2', http=http, cache_discovery=False)


class DriveAuthenticator:
    """
    Interactive OAuth2 authorization for the application folder.

    Produces the credential bundle that every later call is made with.
    """

    def __init__(self, settings: DriveSettings) -> None:
        self.settings = settings

    def authorize(self, client_secrets_file: Path, port: int = 0) -> CredentialBundle:
        """
        Run the installed-app flow and return a bundle with a refresh token.

        Args:
            client_secrets_file: OAuth client secrets JSON downloaded from the console
            port: Local redirect port, 0 picks a free one

        Returns:
            CredentialBundle for the authorized account

        Raises:
            AuthenticationError: If the flow fails or yields no refresh token
        """
        if not client_secrets_file.exists():
            raise AuthenticationError(
                f"Client secrets file not found: {client_secrets_file}",
                service="Google Drive",
                auth_type="OAuth2"
            )

        try:
            flow = InstalledAppFlow.from_client_secrets_file(str(client_secrets_file), SCOPES)

            credentials = flow.run_local_server(
                port=port,
                prompt='consent',
                access_type='offline',
                authorization_prompt_message='Please visit this URL to authorize the application: {url}',
                success_message='Authorization successful. You can close this window.'
            )
        except Exception as e:
            logger.error(f"OAuth2 flow failed: {e}")
            raise AuthenticationError(
                f"OAuth2 flow failed: {str(e)}",
                service="Google Drive",
                auth_type="OAuth2"
            ) from e

        if not credentials.refresh_token:
            raise AuthenticationError(
                "Authorization did not return a refresh token",
                service="Google Drive",
                auth_type="OAuth2"
            )

        logger.info("OAuth2 flow completed successfully")
        return CredentialBundle(
            client_id=credentials.client_id,
            client_secret=credentials.client_secret,
            refresh_token=credentials.refresh_token
        )
