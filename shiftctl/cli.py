import logging
import sys
from typing import Optional

import typer

from shiftctl.commands import ip, oc, provision
from shiftctl.config import Config

app = typer.Typer(help="Client tooling install and guest bootstrap for single-node cluster VMs.")

debug_mode = False


def setup_logging(debug: bool = False, log_file: Optional[str] = None):
    """Configure logging based on debug mode."""
    log_level = logging.DEBUG if debug else getattr(logging, Config.LOG_LEVEL, logging.INFO)
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=log_level, format=Config.LOG_FORMAT, handlers=handlers)
    # Disable debug logging for noisy libraries
    if not debug:
        logging.getLogger('paramiko').setLevel(logging.WARNING)
        logging.getLogger('urllib3').setLevel(logging.WARNING)


app.command("ip")(ip.ip_cmd)
app.add_typer(oc.app, name="oc")
app.add_typer(provision.app, name="provision")


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
    log_file: str = typer.Option(None, "--log-file", envvar="SHIFTCTL_LOG_FILE", help="Also write logs to this file"),
):
    """shiftctl - guest bootstrap CLI."""
    global debug_mode
    debug_mode = debug
    try:
        Config.validate()
    except ValueError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)
    setup_logging(debug, log_file)
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Debug mode enabled")


if __name__ == "__main__":
    try:
        app()
    except Exception as e:
        if debug_mode:
            import traceback
            logging.error(f"Unhandled exception: {e}\n{traceback.format_exc()}")
        else:
            logging.error(f"Error: {e}")
        sys.exit(1)
