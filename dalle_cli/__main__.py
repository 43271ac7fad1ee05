"""
Console entry point: runs the typer app and turns escaped errors into exit codes.

Usage errors, `typer.Exit` and Ctrl-C are handled by typer itself.
"""

import logging
import sys

from dalle_cli.cli.app import app, console
from dalle_cli.cli.formatters import format_error_with_suggestions
from dalle_cli.exceptions import DalleCliError

log = logging.getLogger("dalle_cli")


def main() -> None:
    try:
        app()
    except DalleCliError as e:
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
