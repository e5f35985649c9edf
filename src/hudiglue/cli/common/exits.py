"""Exit paths shared by the hudiglue commands.

Exit code 2 is reserved for usage and config problems, 1 for catalog
failures. Dry runs and empty selections stop with code 0.
"""

from typing import NoReturn

import typer

from hudiglue.cli.common.output import out


def ok_exit(msg: str | None = None) -> NoReturn:
    """Stop a command that had nothing left to do, e.g. the database already exists."""
    if msg:
        out.info(msg)
    raise typer.Exit(0)


def die(msg: str, code: int = 1) -> NoReturn:
    """Abort the command; pass `code=2` for bad arguments or an unreadable config."""
    out.error(msg)
    raise typer.Exit(code)


def warn_exit(msg: str, code: int = 0) -> NoReturn:
    """Stop before touching the catalog (dry run, cancelled prompt, nothing selected)."""
    out.warn(msg)
    raise typer.Exit(code)


def exit_from_exc(exc: Exception, *, message: str, code: int = 1) -> NoReturn:
    """
    Report a sync or listing failure (with its cause, if chained) and exit.

    Keeps the exception chain so `--verbose` tracebacks show the root cause.
    """
    cause = exc.__cause__
    out.error(f"{message}: {cause}" if cause else message)
    raise typer.Exit(code) from exc
