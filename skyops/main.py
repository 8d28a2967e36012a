"""skyops CLI entry point."""

from __future__ import annotations

import asyncio
import logging

import click
import uvicorn

from skyops.channels.web import create_app
from skyops.config import SkyopsSettings, load_config
from skyops.core.chat_client import TransportError
from skyops.core.console import QUICK_ACTIONS, OpsConsole
from skyops.core.logging import setup_logging
from skyops.core.telemetry import init_tracing, shutdown_tracing
from skyops.core.turn import TurnResult
from skyops.directives.validator import DirectiveError
from skyops.models.approval import ApprovalRecord

logger = logging.getLogger(__name__)

_HELP = (
    "Commands: /approvals, /approve ID, /reject ID, /board, "
    "/quick ACTION FLIGHT, /quit. Anything else is sent to the model."
)


def _load_settings(config_path: str | None) -> SkyopsSettings:
    if config_path is None:
        return SkyopsSettings()
    try:
        return load_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc


def _bootstrap(settings: SkyopsSettings) -> None:
    setup_logging(settings.logging.level, json_output=settings.logging.json_output)
    init_tracing(settings.telemetry)


def _format_record(record: ApprovalRecord) -> str:
    action = record.directive.as_action()
    subject = action.get("flightId") or action.get("fromFlightId") or ""
    line = f"{record.id}  {action['type']} {subject}  ({record.impact.value})  {record.status.value}"
    if record.reason:
        line += f"  - {record.reason}"
    return line


def _echo_turn_summary(result: TurnResult) -> None:
    click.echo()
    if result.aborted:
        click.echo("[turn aborted]")
    for item in result.directives:
        if item.record is None:
            click.echo(f"[executed] {item.directive.directive_type.value}")
        else:
            click.echo(f"[awaiting approval] {_format_record(item.record)}")


def handle_command(console: OpsConsole, line: str) -> bool:
    """Run one slash command. Returns False when the loop should stop."""
    command, *args = line.split()
    if command in {"/quit", "/exit"}:
        return False
    if command == "/approvals":
        records = console.gate.records
        if not records:
            click.echo("No approvals yet.")
        for record in records:
            click.echo(_format_record(record))
    elif command in {"/approve", "/reject"} and len(args) == 1:
        decide = console.approve if command == "/approve" else console.reject
        if decide(args[0]):
            click.echo(f"{args[0]}: {'approved' if command == '/approve' else 'rejected'}")
        else:
            click.echo(f"{args[0]}: nothing to decide")
    elif command == "/board":
        click.echo(console.board.summary())
        for event in console.board.feed[:5]:
            click.echo(f"  [{event.level}] {event.text}")
    elif command == "/quick" and len(args) == 2:
        try:
            admitted = console.quick_action(args[0], args[1])
        except (KeyError, DirectiveError) as exc:
            click.echo(f"Cannot run quick action: {exc}")
        else:
            if admitted.record is None:
                click.echo(f"[executed] {admitted.directive.directive_type.value}")
            else:
                click.echo(f"[awaiting approval] {_format_record(admitted.record)}")
    else:
        click.echo(_HELP)
        click.echo(f"Quick actions: {', '.join(sorted(QUICK_ACTIONS))}")
    return True


async def _chat_loop(console: OpsConsole) -> None:
    click.echo(_HELP)
    while True:
        line = (await asyncio.to_thread(click.prompt, "ceo", prompt_suffix="> ")).strip()
        if not line:
            continue
        if line.startswith("/"):
            if not handle_command(console, line):
                return
            continue
        try:
            result = await console.send(line, sink=lambda delta: click.echo(delta, nl=False))
        except TransportError as exc:
            click.echo(f"\n[transport error] {exc} {exc.detail}".rstrip(), err=True)
            continue
        _echo_turn_summary(result)


@click.group()
def cli() -> None:
    """Airline operations console with gated model directives."""


@cli.command("chat")
@click.option("--config", "config_path", default=None, help="YAML config file.")
def chat_command(config_path: str | None) -> None:
    settings = _load_settings(config_path)
    _bootstrap(settings)
    console = OpsConsole(settings)

    async def _run() -> None:
        try:
            await _chat_loop(console)
        finally:
            await console.aclose()

    try:
        asyncio.run(_run())
    except (KeyboardInterrupt, click.Abort):
        click.echo("\nShutting down.")
    finally:
        shutdown_tracing()


@cli.command("serve")
@click.option("--config", "config_path", default=None, help="YAML config file.")
@click.option("--host", default=None, help="Override web.host.")
@click.option("--port", type=int, default=None, help="Override web.port.")
def serve_command(config_path: str | None, host: str | None, port: int | None) -> None:
    settings = _load_settings(config_path)
    _bootstrap(settings)
    app = create_app(OpsConsole(settings))
    try:
        uvicorn.run(
            app,
            host=host or settings.web.host,
            port=port or settings.web.port,
            log_config=None,
        )
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    cli()
