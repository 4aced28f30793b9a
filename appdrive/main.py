"""
Command line entry point for AppDrive.

This module exposes the application folder operations as CLI commands
for operators: listing, uploading, downloading and deleting files, and
bootstrapping OAuth2 credentials.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional, NoReturn

import click

from appdrive.core.logging import setup_logging, get_logger
from appdrive.core.exceptions import AppDriveError, RemoteFileNotFoundError
from appdrive.drive_integration.auth import DriveAuthenticator
from appdrive.drive_integration.schemas import RemoteFile
from appdrive.drive_integration.service import GoogleDriveService
from appdrive.settings import get_settings


# Setup logging
settings = get_settings()
setup_logging(settings.logging, "appdrive")
logger = get_logger(__name__)


@click.group()
@click.version_option(version=settings.version)
@click.option('--debug', '-d', is_flag=True, help='Enable debug mode')
def cli(debug: bool):
    """AppDrive - hierarchical files in the Google Drive application folder."""
    if debug:
        settings.debug = True

    if settings.debug:
        settings.logging.level = "DEBUG"
        setup_logging(settings.logging, "appdrive", force=True)
        logger.debug("Debug mode enabled")


@cli.command(name="ls")
@click.argument('folder', default="")
def list_command(folder: str):
    """List files in FOLDER and its subfolders."""
    asyncio.run(list_files(folder))


@cli.command(name="put")
@click.argument('local_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('remote_path')
def put_command(local_file: Path, remote_path: str):
    """Upload LOCAL_FILE to REMOTE_PATH, replacing any existing copy."""
    asyncio.run(upload(local_file, remote_path))


@cli.command(name="get")
@click.argument('remote_path')
@click.argument('local_file', required=False, type=click.Path(dir_okay=False, path_type=Path))
def get_command(remote_path: str, local_file: Optional[Path]):
    """Download REMOTE_PATH to LOCAL_FILE (default: standard output)."""
    asyncio.run(download(remote_path, local_file))


@cli.command(name="rm")
@click.argument('remote_path')
def remove_command(remote_path: str):
    """Delete REMOTE_PATH."""
    asyncio.run(delete(remote_path))


@cli.command()
@click.argument('client_secrets', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--port', default=0, show_default=True, help='Local redirect port')
def authorize(client_secrets: Path, port: int):
    """Authorize access and print the credentials to configure."""
    try:
        bundle = DriveAuthenticator(settings.drive).authorize(client_secrets, port=port)
    except AppDriveError as e:
        logger.error(f"Authorization failed: {e}")
        click.echo(f"❌ Error: {e.message}", err=True)
        sys.exit(1)

    click.echo("✅ Authorization successful. Add these to your .env file:")
    click.echo(f"APPDRIVE_CLIENT_ID={bundle.client_id}")
    click.echo(f"APPDRIVE_CLIENT_SECRET={bundle.client_secret}")
    click.echo(f"APPDRIVE_REFRESH_TOKEN={bundle.refresh_token}")


def _create_service() -> GoogleDriveService:
    return GoogleDriveService(settings.drive)


def _parse_remote_path(remote_path: str) -> RemoteFile:
    try:
        return RemoteFile.from_path(remote_path)
    except ValueError as e:
        raise click.BadParameter(f"Invalid remote path: {remote_path!r}") from e


def _fail(error: AppDriveError) -> NoReturn:
    if isinstance(error, RemoteFileNotFoundError):
        click.echo(f"❌ Not found: {error.message}", err=True)
    else:
        logger.error(f"Command failed: {error}")
        click.echo(f"❌ Error: {error.message}", err=True)
    sys.exit(1)


async def list_files(folder: str):
    """List files under a folder."""
    try:
        credentials = settings.drive.credential_bundle()
        files = await _create_service().list_folder(folder, credentials)
    except AppDriveError as e:
        _fail(e)

    for remote_file in files:
        click.echo(remote_file.path)


async def upload(local_file: Path, remote_path: str):
    """Upload a local file."""
    remote_file = _parse_remote_path(remote_path)

    try:
        credentials = settings.drive.credential_bundle()
        with open(local_file, "rb") as stream, click.progressbar(length=100, label="Uploading", file=sys.stderr) as bar:
            def report(percentage: float) -> None:
                bar.update(int(percentage) - bar.pos)

            stored = await _create_service().upload_file(stream, remote_file, credentials, progress=report)
    except AppDriveError as e:
        _fail(e)

    click.echo(f"✅ Uploaded {remote_file.path} (ID: {stored.id})")


async def download(remote_path: str, local_file: Optional[Path]):
    """Download a remote file."""
    remote_file = _parse_remote_path(remote_path)

    try:
        credentials = settings.drive.credential_bundle()
        stream = await _create_service().get_file(remote_file, credentials)

        if local_file is None:
            output = click.get_binary_stream("stdout")
            async for chunk in stream:
                output.write(chunk)
            output.flush()
            return

        # The target only appears once every chunk has arrived
        partial_file = local_file.with_name(f"{local_file.name}.part")
        try:
            with open(partial_file, "wb") as output:
                async for chunk in stream:
                    output.write(chunk)
            partial_file.replace(local_file)
        finally:
            partial_file.unlink(missing_ok=True)
    except AppDriveError as e:
        _fail(e)

    click.echo(f"✅ Downloaded {remote_file.path} to {local_file}")


async def delete(remote_path: str):
    """Delete a remote file."""
    remote_file = _parse_remote_path(remote_path)

    try:
        credentials = settings.drive.credential_bundle()
        await _create_service().delete_file(remote_file, credentials)
    except AppDriveError as e:
        _fail(e)

    click.echo(f"✅ Deleted {remote_file.path}")


def main():
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\n👋 Cancelled", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
