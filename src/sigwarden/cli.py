"""Click CLI command definitions for sigwarden."""

from __future__ import annotations

import click

from sigwarden import __version__


@click.group()
@click.version_option(version=__version__, prog_name="sigwarden")
def main() -> None:
    """sigwarden: ordered signal handling and graceful shutdown."""


# --- Config commands ---

@main.group()
def config() -> None:
    """Manage configuration."""


@config.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing config")
def config_init(force: bool) -> None:
    """Create default configuration file."""
    from sigwarden.config import init_config
    try:
        path = init_config(force=force)
        click.echo(f"Config created: {path}")
    except FileExistsError as e:
        click.echo(str(e), err=True)
        raise SystemExit(1)


@config.command("show")
def config_show() -> None:
    """Show current configuration."""
    from sigwarden.config import CONFIG_FILE
    if not CONFIG_FILE.exists():
        click.echo(f"No config file found at {CONFIG_FILE}", err=True)
        click.echo("Run 'sigwarden config init' to create one.", err=True)
        raise SystemExit(1)
    click.echo(CONFIG_FILE.read_text())


@config.command("termination")
@click.argument("signals", nargs=-1, required=True)
def config_termination(signals: tuple[str, ...]) -> None:
    """Set the signals that trigger shutdown.

    \b
    Examples:
      sigwarden config termination SIGINT SIGTERM
      sigwarden config termination term quit
    """
    from sigwarden.config import set_value
    from sigwarden.signals import SignalNameError, to_signal
    try:
        resolved = [to_signal(s) for s in signals]
    except SignalNameError as e:
        raise click.BadParameter(str(e), param_hint="SIGNALS")
    names = [s.name for s in resolved]
    set_value("signals", "termination", names)
    click.echo(f"Termination signals set to {', '.join(names)}")


@config.command("debug")
@click.argument("enabled", type=click.BOOL)
def config_debug(enabled: bool) -> None:
    """Turn debug log lines on or off."""
    from sigwarden.config import set_value
    set_value("logging", "debug", enabled)
    click.echo(f"Debug logging {'enabled' if enabled else 'disabled'}")


# --- Signal commands ---

@main.command("signals")
def signals_list() -> None:
    """List the signals a listener subscribes to."""
    from sigwarden.config import get
    from sigwarden.signals import catchable_signals, to_signal

    termination = {to_signal(n) for n in get("signals", "termination", [])}
    for sig in catchable_signals():
        marker = "  (termination)" if sig in termination else ""
        click.echo(f"{int(sig):>3}  {sig.name}{marker}")


@main.command()
@click.argument("signal_name", metavar="SIGNAL")
def send(signal_name: str) -> None:
    """Send SIGNAL (name or number) to the running daemon."""
    from sigwarden.daemon.runner import send_signal
    from sigwarden.signals import SignalNameError
    try:
        send_signal(signal_name)
    except SignalNameError as e:
        raise click.BadParameter(str(e), param_hint="SIGNAL")


# --- Daemon commands ---

@main.command()
@click.option("--foreground", is_flag=True, help="Run in foreground instead of daemonizing")
def start(foreground: bool) -> None:
    """Start the sigwarden daemon."""
    from sigwarden.daemon.runner import start_daemon
    start_daemon(foreground)


@main.command()
def stop() -> None:
    """Stop the sigwarden daemon."""
    from sigwarden.daemon.runner import stop_daemon
    stop_daemon()


@main.command()
def status() -> None:
    """Show current status (daemon, termination signals)."""
    from sigwarden.daemon.runner import show_status
    show_status()
