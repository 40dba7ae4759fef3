"""CLI entry point for ptyhost."""

from __future__ import annotations

import asyncio
import json
import logging
import os

import typer

from ptyhost.config import PtyHostConfig

app = typer.Typer(
    name="ptyhost",
    help="Run and drive background terminal sessions through a small tool API.",
    no_args_is_help=True,
)


def setup_logging(verbose: bool = False) -> None:
    # stderr only: stdout carries the tool protocol
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@app.command()
def serve(
    project_dir: str | None = typer.Option(
        None, "--project-dir", "-p", help="Trusted project root (default: current directory)."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Serve the pty_* tools as JSON lines on stdin/stdout."""
    from ptyhost.server import build_server, serve_stdio

    setup_logging(verbose)
    config = PtyHostConfig.load(config_file)
    if project_dir:
        config.server.project_dir = os.path.abspath(project_dir)

    server = build_server(config)
    try:
        asyncio.run(serve_stdio(server))
    except KeyboardInterrupt:
        typer.echo("Interrupted", err=True)


@app.command()
def tools(
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Print the JSON schema of every tool."""
    from ptyhost.server import build_server

    server = build_server(PtyHostConfig.load(config_file))
    typer.echo(json.dumps(server.tools.get_specs(), indent=2))


@app.command()
def check(
    command: str = typer.Argument(..., help="Command name to check."),
    args: list[str] | None = typer.Argument(None, help="Command arguments (use -- before options)."),
    workdir: str | None = typer.Option(
        None, "--workdir", "-w", help="Also check this working directory."
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Evaluate the permission policy for a command without running it."""
    from ptyhost.permission import PermissionEngine

    setup_logging()
    config = PtyHostConfig.load(config_file)
    engine = PermissionEngine(config.permissions)

    verdicts = [engine.check_command(command, list(args or []))]
    if workdir:
        verdicts.append(engine.check_workdir(workdir, config.project_dir))

    for verdict in verdicts:
        state = "allowed" if verdict.allowed else "rejected"
        rule = f" [rule: {verdict.matched}]" if verdict.matched else ""
        reason = f": {verdict.reason}" if verdict.reason else ""
        typer.echo(f"{verdict.subject}: {state} ({verdict.action.value}){rule}{reason}")

    if not all(v.allowed for v in verdicts):
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
