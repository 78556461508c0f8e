"""compound-eye CLI entry point.

Commands:
    serve   Run the HTTP API
    add     Capture an observation on a running server
    scan    Scan a directory for git repos and register them as projects
"""

import typer

from compound_eye import __version__

from .client import DEFAULT_PORT, ApiError, CompoundEyeClient, ServerUnavailableError
from .console import console, create_table, print_error, print_info, print_success

app = typer.Typer(
    name="compound-eye",
    help="Compound Eye - capture and review engineering workflow observations",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"compound-eye version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Compound Eye - capture and review engineering workflow observations."""


@app.command(name="serve")
def serve_command(
    port: int | None = typer.Option(None, "--port", "-p", help="Port to serve on (default: 4141)"),
    host: str | None = typer.Option(None, "--host", help="Interface to bind"),
    db: str | None = typer.Option(None, "--db", help="Database file path"),
    config: str | None = typer.Option(None, "--config", "-c", help="Config file path"),
) -> None:
    """Run the Compound Eye HTTP API."""
    from compound_eye.config import ConfigurationError
    from compound_eye.server import run_server

    try:
        run_server(config_path=config, host=host, port=port, db_path=db)
    except ConfigurationError as e:
        print_error(f"Configuration error: {e}")
        raise typer.Exit(1) from e


@app.command(name="add")
def add_command(
    text: str = typer.Argument(..., help="Observation text"),
    project: str = typer.Option(..., "--project", help="Project (owner/repo format)"),
    source: str = typer.Option("human", "--source", help="Who originated this observation"),
    port: int = typer.Option(DEFAULT_PORT, "--port", help="Server port"),
) -> None:
    """Capture an observation.

    Example:
        compound-eye add "flaky test retries always happen in CI" --project acme/widgets
    """
    client = CompoundEyeClient(port=port)
    try:
        observation = client.add_observation(text, project=project, source=source)
    except (ServerUnavailableError, ApiError) as e:
        print_error(f"Error: {e}" if isinstance(e, ApiError) else str(e))
        raise typer.Exit(1) from e

    print_success(f"Captured #{observation['id']}: {observation['text']}")


@app.command(name="scan")
def scan_command(
    path: str = typer.Argument(..., help="Directory to scan (~ is expanded)"),
    port: int = typer.Option(DEFAULT_PORT, "--port", help="Server port"),
) -> None:
    """Scan a directory for GitHub repos and register them as projects."""
    client = CompoundEyeClient(port=port)
    try:
        print_info(f"Scanning {path} for git repos...")
        candidates = client.scan(path)

        if not candidates:
            console.print("No GitHub repos found.")
            return

        table = create_table(f"Found {len(candidates)} repo(s)")
        table.add_column("Project", style="green")
        for name in candidates:
            table.add_row(name)
        console.print(table)

        registered = client.register_projects(candidates)
    except (ServerUnavailableError, ApiError) as e:
        print_error(f"Error: {e}" if isinstance(e, ApiError) else str(e))
        raise typer.Exit(1) from e

    print_success(f"Registered {len(registered)} new project(s).")


if __name__ == "__main__":
    app()
