"""
Main CLI application
"""
import typer
from pathlib import Path
from typing import Optional, Dict, Any, Tuple

from rich.table import Table

from ...core.constants import DEFAULT_LINE_ENDING, LINE_ENDINGS
from ...core.exceptions import ConfigError
from ...core.logging import setup_logging, get_logger, get_stdout_console
from ...domain.serial import list_serial_ports
from ..config.loader import ConfigLoader
from .connection import TransportFactory
from .prompts import RichPromptProvider
from .session import TerminalSession

logger = get_logger(__name__)
console = get_stdout_console()
prompt_provider = RichPromptProvider()

# Create main app
app = typer.Typer(
    name="termlink",
    add_completion=False,
    help="Serial and SSH terminal",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def main(
    ctx: typer.Context,
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file path (TOML)",
    ),
):
    """
    termlink - talk to serial devices and SSH hosts from one terminal

    Lines typed on stdin are sent with the chosen line ending; received bytes
    are written to stdout as-is. Close stdin (Ctrl-D) to disconnect.
    """
    setup_logging(level=log_level, log_file=log_file)
    ctx.obj = {"config_file": config_file}


def _load_settings(ctx: typer.Context, overrides: Dict[str, Any]) -> Dict[str, Any]:
    config_file = (ctx.obj or {}).get("config_file")
    return ConfigLoader().load(toml_path=config_file, cli_overrides=overrides)


def _resolve_line_ending(name: str) -> str:
    ending = LINE_ENDINGS.get(str(name).upper())
    if ending is None:
        raise ConfigError(f"Invalid line ending: {name}, must be one of {', '.join(LINE_ENDINGS)}")
    return ending


def parse_target(target: str) -> Tuple[Optional[str], str]:
    """Split "user@host" into (user, host); user is None when absent"""
    if "@" in target:
        user, _, host = target.rpartition("@")
        return user or None, host
    return None, target


@app.command(name="ports")
def ports_command():
    """List serial ports available on this machine"""
    ports = list_serial_ports()
    if not ports:
        prompt_provider.warning("No serial ports found")
        return

    table = Table(title="Serial ports")
    table.add_column("Device", style="cyan")
    table.add_column("Description")
    table.add_column("Manufacturer")
    for port in ports:
        table.add_row(port.device, port.description, port.manufacturer)
    console.print(table)


def _suggest_ports() -> None:
    """Name the detected ports when none was selected"""
    ports = list_serial_ports()
    if ports:
        prompt_provider.info("Available ports: " + ", ".join(port.label for port in ports))


@app.command(name="serial")
def serial_command(
    ctx: typer.Context,
    port: Optional[str] = typer.Argument(None, help="Serial device or pyserial URL (e.g. /dev/ttyUSB0, COM3, loop://)"),
    baudrate: Optional[int] = typer.Option(None, "--baud", "-b", help="Baud rate (default: 115200)"),
    data_bits: Optional[int] = typer.Option(None, "--data-bits", help="Data bits: 5, 6, 7 or 8"),
    parity: Optional[str] = typer.Option(None, "--parity", help="Parity: None, Odd or Even"),
    stop_bits: Optional[int] = typer.Option(None, "--stop-bits", help="Stop bits: 1 or 2"),
    flow_control: Optional[str] = typer.Option(None, "--flow-control", help="Flow control: None, Hardware or Software"),
    timeout_ms: Optional[int] = typer.Option(None, "--timeout-ms", help="Read timeout in milliseconds"),
    line_ending: Optional[str] = typer.Option(None, "--line-ending", help="Line ending: LF, CR or CRLF"),
):
    """
    Open a serial terminal

    Examples:
        termlink serial /dev/ttyUSB0 --baud 9600
        termlink serial COM3 --parity Even --stop-bits 2
    """
    try:
        settings = _load_settings(ctx, {
            "serial": {
                "port": port,
                "baudrate": baudrate,
                "data_bits": data_bits,
                "parity": parity,
                "stop_bits": stop_bits,
                "flow_control": flow_control,
                "timeout_ms": timeout_ms,
                "line_ending": line_ending,
            },
        })
        serial_settings = settings["serial"]
        if not serial_settings.get("port"):
            _suggest_ports()
        ending = _resolve_line_ending(serial_settings.get("line_ending", DEFAULT_LINE_ENDING))
        transport = TransportFactory().create_serial(serial_settings)
    except ConfigError as e:
        prompt_provider.error(f"Configuration error: {e}")
        logger.error(f"Configuration error: {e}")
        raise typer.Exit(1)

    session = TerminalSession(transport, prompt_provider, line_ending=ending)
    raise typer.Exit(session.run())


@app.command(name="ssh")
def ssh_command(
    ctx: typer.Context,
    target: Optional[str] = typer.Argument(None, help="[user@]host"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="SSH port (default: 22)"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="SSH username"),
    key: Optional[Path] = typer.Option(None, "--key", "-i", help="Private key file"),
    passphrase: bool = typer.Option(False, "--passphrase", help="Prompt for the private key passphrase"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Connect timeout in seconds (default: 10)"),
    host_key_timeout: Optional[float] = typer.Option(
        None,
        "--host-key-timeout",
        help="Seconds to answer a host key question before it is rejected (default: 300)",
    ),
    known_hosts: Optional[Path] = typer.Option(None, "--known-hosts", help="known_hosts file (default: ~/.ssh/known_hosts)"),
    line_ending: Optional[str] = typer.Option(None, "--line-ending", help="Line ending: LF, CR or CRLF"),
):
    """
    Open an interactive SSH shell

    Unknown host keys are shown for confirmation and remembered when
    accepted; a changed key triggers a man-in-the-middle warning.

    Examples:
        termlink ssh admin@192.168.1.1
        termlink ssh router -u admin -i ~/.ssh/id_ed25519
    """
    target_user, target_host = parse_target(target) if target else (None, None)
    try:
        settings = _load_settings(ctx, {
            "ssh": {
                "host": target_host,
                "port": port,
                "username": user or target_user,
                "key_path": str(key) if key else None,
                "timeout": timeout,
                "host_key_timeout": host_key_timeout,
                "known_hosts": str(known_hosts) if known_hosts else None,
                "line_ending": line_ending,
            },
        })
        ssh_settings = settings["ssh"]
        ending = _resolve_line_ending(ssh_settings.get("line_ending", DEFAULT_LINE_ENDING))

        factory = TransportFactory()
        # Validate before asking for secrets
        factory.create_ssh(ssh_settings)

        password = None
        key_passphrase = None
        label = f"{ssh_settings['username']}@{ssh_settings['host']}"
        if ssh_settings.get("key_path"):
            if passphrase:
                key_passphrase = prompt_provider.prompt(f"Passphrase for {ssh_settings['key_path']}", password=True)
        else:
            password = prompt_provider.prompt(f"Password for {label}", password=True)

        transport = factory.create_ssh(ssh_settings, password=password, passphrase=key_passphrase)
    except ConfigError as e:
        prompt_provider.error(f"Configuration error: {e}")
        logger.error(f"Configuration error: {e}")
        raise typer.Exit(1)

    session = TerminalSession(transport, prompt_provider, line_ending=ending)
    raise typer.Exit(session.run())


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
