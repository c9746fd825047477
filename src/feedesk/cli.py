"""CLI entry point for FeeDesk."""

from __future__ import annotations

import sys

import click
import uvicorn

from feedesk.accounts import check_database
from feedesk.config import ConfigError, Settings
from feedesk.logging import setup_logging
from feedesk.service import Backend


def load_settings(db_path: str | None) -> Settings:
    """Settings from the environment, with an optional database override."""
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    if db_path is not None:
        settings.db_path = db_path
    return settings


@click.group()
@click.version_option(package_name="feedesk")
def main() -> None:
    """FeeDesk - student fee payments service."""
    pass


@main.command()
@click.option("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
@click.option("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
@click.option("--db", "db_path", default=None, help="SQLite database path (env: FEEDESK_DB_PATH)")
@click.option("--log-dir", default=None, help="Log directory (env: FEEDESK_LOG_DIR)")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def serve(host: str, port: int, db_path: str | None, log_dir: str | None, verbose: bool) -> None:
    """Run the REST API."""
    from feedesk.api.app import create_app  # noqa: PLC0415

    setup_logging(log_dir=log_dir, level="DEBUG" if verbose else None)
    settings = load_settings(db_path)
    click.echo(f"Serving FeeDesk on http://{host}:{port} (db: {settings.db_path})")
    uvicorn.run(create_app(settings), host=host, port=port)


@main.command("check-db")
@click.option("--db", "db_path", default=None, help="SQLite database path (env: FEEDESK_DB_PATH)")
def check_db(db_path: str | None) -> None:
    """Check that the students and transactions tables are usable."""
    settings = load_settings(db_path)
    backend = Backend.create(settings)
    try:
        result = check_database(backend.client())
    finally:
        backend.close()

    if not result.success:
        click.echo(f"Error: {result.error}", err=True)
        if result.details:
            click.echo(f"  Details: {result.details}", err=True)
        sys.exit(1)
    click.echo(result.message)


if __name__ == "__main__":
    main()
