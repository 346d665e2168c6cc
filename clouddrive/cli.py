"""CLI commands for clouddrive."""

import asyncio
import base64
import json
import re
import secrets
from pathlib import Path

import click


@click.group()
@click.version_option(package_name="clouddrive")
def cli():
    """clouddrive - a folder-oriented file drive over an object store."""
    pass


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8080, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.option("--workers", default=1, type=int, help="Number of worker processes")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level",
)
def serve(host, port, reload, workers, log_level):
    """Run the clouddrive server."""
    import signal

    from hypercorn.asyncio import serve as hypercorn_serve
    from hypercorn.config import Config

    config = Config()
    config.application_path = "clouddrive.asgi:app"
    config.bind = [f"{host}:{port}"]
    config.workers = 1 if reload else workers
    config.loglevel = log_level.upper()
    config.include_server_header = False

    if reload or workers > 1:
        config.use_reloader = reload
        from hypercorn.run import run
        run(config)
        return

    from clouddrive.asgi import app

    shutdown_event = asyncio.Event()

    loop = asyncio.new_event_loop()
    loop.add_signal_handler(signal.SIGINT, shutdown_event.set)
    loop.add_signal_handler(signal.SIGTERM, shutdown_event.set)
    try:
        loop.run_until_complete(
            hypercorn_serve(app, config, shutdown_trigger=shutdown_event.wait)
        )
    finally:
        loop.close()


def _run_with_drive(func):
    """Build a Drive from settings, run ``func(drive)`` and close it again."""
    from clouddrive.app_factory import build_drive, close_drive
    from clouddrive.config import get_settings

    settings = get_settings()

    async def runner():
        drive = build_drive(settings)
        try:
            return await func(drive)
        finally:
            await close_drive(drive, settings.deferred.shutdown_timeout)

    return asyncio.run(runner())


@cli.command()
def reconcile():
    """Recompute the total stored size with a full scan."""

    async def run(drive):
        if drive.ledger is None:
            raise click.ClickException("Size accounting is disabled (counters.backend is 'none')")
        return await drive.ledger.reconcile()

    total = _run_with_drive(run)
    from clouddrive.vfs.listing import format_bytes

    click.echo(f"Total size: {total} bytes ({format_bytes(total)})")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the reading as JSON")
def usage(as_json):
    """Show the cached total stored size without scanning."""
    from clouddrive.config import get_settings
    from clouddrive.controllers.helpers import usage_to_dict

    async def run(drive):
        if drive.ledger is None:
            raise click.ClickException("Size accounting is disabled (counters.backend is 'none')")
        return await drive.ledger.peek()

    reading = usage_to_dict(_run_with_drive(run), get_settings().accounting.quota_bytes)
    if as_json:
        click.echo(json.dumps(reading, indent=2))
        return

    click.echo(f"Total size:        {reading['size_display']} ({reading['total_size']} bytes)")
    click.echo(f"Quota used:        {reading['used_percentage']}%")
    click.echo(f"Last recalculated: {reading['last_recalculated'] or 'never'}")


@cli.command()
@click.option("--tree", is_flag=True, help="Print folders as an indented tree")
def folders(tree):
    """List every folder in the store."""

    async def run(drive):
        return await drive.all_folders()

    paths = _run_with_drive(run)
    if not tree:
        for path in paths:
            click.echo(path or "/")
        return

    from clouddrive.vfs.folders import build_folder_tree

    def walk(node, depth):
        for name in sorted(node):
            click.echo(f"{'  ' * depth}{name}/")
            walk(node[name], depth + 1)

    click.echo("/")
    walk(build_folder_tree(paths), 1)


@cli.command()
@click.option(
    "--write",
    type=click.Path(),
    default=None,
    help="Write ADMIN_TOKEN to a .env file",
)
@click.option(
    "--format",
    "fmt",
    default="urlsafe",
    type=click.Choice(["urlsafe", "hex", "base64"]),
    help="Output format for the token",
)
@click.option("--length", default=32, type=int, help="Number of random bytes")
def token(write, fmt, length):
    """Generate an admin bearer token."""
    if fmt == "urlsafe":
        value = secrets.token_urlsafe(length)
    elif fmt == "hex":
        value = secrets.token_hex(length)
    else:  # base64
        value = base64.b64encode(secrets.token_bytes(length)).decode("ascii")

    if not write:
        click.echo(value)
        return

    env_path = Path(write)
    env_content = env_path.read_text() if env_path.exists() else ""

    pattern = re.compile(r"^ADMIN_TOKEN=.*$", re.MULTILINE)
    new_line = f"ADMIN_TOKEN={value}"

    if pattern.search(env_content):
        env_content = pattern.sub(new_line, env_content)
    else:
        if env_content and not env_content.endswith("\n"):
            env_content += "\n"
        env_content += new_line + "\n"

    env_path.write_text(env_content)
    click.echo(f"ADMIN_TOKEN written to {env_path}")


if __name__ == "__main__":
    cli()
