"""Typer CLI entrypoint."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import typer

from stripctl.core.commands import MODE_FIELDS
from stripctl.core.errors import CommandFormatError, StripctlError
from stripctl.core.service import StripService

app = typer.Typer(help="Compile addressable LED strip commands into Modbus register writes")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level"),
) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _build_service(config: str | None) -> StripService:
    service = StripService(config_path=config)
    for warning in getattr(service, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


def _read_commands(source: str) -> list[Any]:
    if source == "-":
        text = sys.stdin.read()
    else:
        try:
            text = Path(source).read_text(encoding="utf-8")
        except OSError as exc:
            raise CommandFormatError(f"Could not read commands from {source}: {exc}") from exc

    try:
        loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CommandFormatError(f"Commands in {source} are not valid JSON: {exc}") from exc

    if isinstance(loaded, dict):
        return [loaded]
    if isinstance(loaded, list):
        return loaded
    raise CommandFormatError("Commands must be a JSON object or an array of objects")


@app.command("devices")
def list_devices(
    config: str | None = typer.Option(None, "--config", "-c", help="Device configuration file"),
) -> None:
    """List configured devices and their bus routing."""
    try:
        service = _build_service(config)
        devices = service.list_devices()
        if not devices:
            typer.echo("No devices configured")
            return

        for device in devices:
            typer.echo(
                f"{device.id}: slave={device.slave} location={device.location} "
                f"strip_size={device.strip_size} mmap={device.mmap_id} -> {device.service}"
            )
    except StripctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("registers")
def list_registers(
    device_id: str,
    config: str | None = typer.Option(None, "--config", "-c", help="Device configuration file"),
) -> None:
    """Show the resolved bus address of every register mapped for a device."""
    try:
        service = _build_service(config)
        addresses = service.register_addresses(device_id)
        for register, address in addresses.items():
            typer.echo(f"  {register.value}: {address:#06x}")
    except StripctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("modes")
def list_modes() -> None:
    """List supported modes and the fields each one requires."""
    for mode, fields in MODE_FIELDS.items():
        required = ", ".join(("brightness", "palette_id") + fields)
        typer.echo(f"{mode.value}: {required}")


@app.command("compile")
def compile_commands(
    source: str = typer.Argument("-", help="JSON file with a command or array of commands, '-' for stdin"),
    config: str | None = typer.Option(None, "--config", "-c", help="Device configuration file"),
    keep_going: bool = typer.Option(
        False,
        "--keep-going",
        help="Compile every command and report failures inline instead of aborting",
    ),
    indent: int | None = typer.Option(None, "--indent", help="Pretty-print output JSON"),
) -> None:
    """Compile lighting commands into bus write instructions.

    By default the first invalid command aborts the whole batch.
    """
    try:
        service = _build_service(config)
        commands = _read_commands(source)
        if keep_going:
            results = service.compile_batch_isolated(commands)
            typer.echo(json.dumps([result.to_dict() for result in results], indent=indent))
            if not all(result.ok for result in results):
                raise typer.Exit(code=1)
            return

        batches = service.compile_batch(commands)
        typer.echo(json.dumps([batch.to_dict() for batch in batches], indent=indent))
    except StripctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
