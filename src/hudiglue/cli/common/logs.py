"""Logging setup for the CLI.

Core modules log through the standard `logging` module; the CLI routes
those records to the shared rich console so they interleave cleanly with
status spinners and tables.
"""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from hudiglue.cli.common.output import console


def setup_logging(verbose: bool = False) -> None:
    """Install a single RichHandler on the root logger."""
    level = logging.DEBUG if verbose else logging.INFO
    handler = RichHandler(
        console=console,
        show_path=verbose,
        rich_tracebacks=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)
    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.INFO if verbose else logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
