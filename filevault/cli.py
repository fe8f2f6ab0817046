import asyncio
import json
from pathlib import Path
from typing import List, Optional

import typer

from filevault.config.settings import settings
from filevault.core.logger import logger

app = typer.Typer(help="filevault maintenance and upload commands.")


@app.command("init-db")
def init_db():
    """Create the catalog tables."""
    from filevault.db.session import create_db_and_tables

    asyncio.run(create_db_and_tables())
    typer.echo("✔ Database tables created.")


async def _run_cleanup():
    from filevault.infra.db.get_repo_factory import get_standalone_repository_factory
    from filevault.infra.storage.storage_factory import storage_factory
    from filevault.services.file.reconciler import ExpiryReconciler

    async with get_standalone_repository_factory() as repo_factory:
        reconciler = ExpiryReconciler(repo_factory, storage_factory.get_object_store())
        return await reconciler.run_cleanup()


@app.command()
def cleanup():
    """
    Run the expiry sweep once. Exits with 1 when any object could not be
    deleted, so a cron wrapper can alert on it.
    """
    typer.echo("Starting expired file cleanup...")
    try:
        summary = asyncio.run(_run_cleanup())
    except Exception as e:
        logger.opt(exception=e).error("Cleanup failed")
        typer.echo(f"✖ Cleanup failed: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(
        f"Cleanup completed. Processed {summary.processed_count} records, "
        f"deleted {summary.deleted_count} files, {summary.error_count} errors, "
        f"purged {summary.purged_sessions} sessions and {summary.purged_shares} shares."
    )
    if summary.error_count:
        raise typer.Exit(code=1)


@app.command()
def upload(
    files: List[Path] = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    api_key: Optional[str] = typer.Option(None, help="API key (fv-...), defaults to FILEVAULT_API_KEY"),
    base_url: Optional[str] = typer.Option(None, help="API base URL, defaults to the configured public URL"),
    duration: str = typer.Option("unlimited", help="1h, 24h, 7d or unlimited"),
    metadata: Optional[str] = typer.Option(None, help="JSON object stored with each file"),
    concurrency: Optional[int] = typer.Option(None, min=1, max=16),
):
    """Upload files through the API with a small worker pool."""
    from filevault.client.client_settings import ClientSettings
    from filevault.client.upload_client import FileVaultUploadClient, UploadStatus, build_tasks
    from filevault.enums.file_enums import UploadDuration

    client_settings = ClientSettings()
    api_key = api_key or client_settings.api_key
    if not api_key:
        raise typer.BadParameter("An API key is required", param_hint="--api-key")
    try:
        upload_duration = UploadDuration.parse(duration)
    except ValueError:
        raise typer.BadParameter(f"Invalid duration '{duration}'", param_hint="--duration")
    try:
        parsed_metadata = json.loads(metadata) if metadata else None
    except json.JSONDecodeError:
        raise typer.BadParameter("Metadata must be valid JSON", param_hint="--metadata")

    url = (
        base_url
        or client_settings.base_url
        or f"{settings.server.public_base_url.rstrip('/')}{settings.server.api_prefix}"
    )
    client = FileVaultUploadClient(
        url,
        api_key,
        concurrency=concurrency or client_settings.concurrency,
        max_attempts=client_settings.max_attempts,
        timeout=client_settings.timeout,
    )

    def _report(task):
        if task.status is UploadStatus.SUCCESS:
            typer.echo(f"✔ {task.path.name} -> {task.result.get('download_url')}")
        else:
            typer.echo(f"✖ {task.path.name}: [{task.error_code}] {task.error}", err=True)

    tasks = asyncio.run(client.upload_all(build_tasks(files, upload_duration, parsed_metadata), on_done=_report))
    failed = [t for t in tasks if t.status is not UploadStatus.SUCCESS]
    typer.echo(f"{len(tasks) - len(failed)}/{len(tasks)} uploaded.")
    if failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
