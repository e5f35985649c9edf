"""Console output helpers shared by every hudiglue command."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import questionary
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from hudiglue.cli.common.tui_style import (
    QUESTIONARY_STYLE_CONFIRM,
    QUESTIONARY_STYLE_SELECT,
)

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

# Keyword arguments only newer questionary releases accept.
_OPTIONAL_PROMPT_KWARGS = ("pointer", "checked_icon", "unchecked_icon", "auto_enter")

console = Console(theme=_THEME)


@dataclass(frozen=True)
class Out:
    """Messages, prompts and tables on the shared rich console."""

    prefix: str = "[hudiglue]"

    def _ask(self, prompt_fn, message: str, **kwargs):
        kwargs.setdefault("qmark", "✦")
        try:
            prompt = prompt_fn(f"{self.prefix} {message}", **kwargs)
        except TypeError:
            for key in _OPTIONAL_PROMPT_KWARGS:
                kwargs.pop(key, None)
            prompt = prompt_fn(f"{self.prefix} {message}", **kwargs)
        return prompt.ask()

    def _line(self, style: str, icon: str, msg: str) -> None:
        console.print(f"[{style}]{icon}[/] {escape(msg)}")

    def info(self, msg: str) -> None:
        self._line("title", "›", msg)

    def success(self, msg: str) -> None:
        self._line("ok", "✓", msg)

    def warn(self, msg: str) -> None:
        self._line("warn", "⚠", msg)

    def error(self, msg: str) -> None:
        self._line("err", "✗", msg)

    def header(self, title: str) -> None:
        console.rule(f"[title]{title}[/]", align="left")

    @contextmanager
    def status(self, msg: str):
        """Spinner shown while a catalog call is in flight."""
        with console.status(msg, spinner="dots"):
            yield

    def kv(self, items: Mapping[str, Any]) -> None:
        width = max((len(str(k)) for k in items), default=0)
        for k, v in items.items():
            console.print(f"[meta]{escape(str(k).ljust(width))}[/]  {escape(str(v))}")

    def select_many(self, message: str, choices: list[str]) -> list[str]:
        """Checkbox prompt; returns the picked values (empty when cancelled)."""
        if not choices:
            return []
        picked = self._ask(
            questionary.checkbox,
            message,
            choices=choices,
            style=QUESTIONARY_STYLE_SELECT,
            instruction="space toggles, a selects all, enter confirms",
            pointer="❯",
            checked_icon="▣",
            unchecked_icon="▢",
        )
        return list(picked or [])

    def confirm(self, message: str, *, default: bool = False) -> bool:
        """
        Yes/no prompt before a catalog mutation.

        Args:
            message: Question shown to the user.
            default: Answer used when the user just presses enter.

        Returns:
            True only on an explicit yes.
        """
        console.print("[meta]Answer y/n, then Enter[/]")
        return bool(
            self._ask(
                questionary.confirm,
                message,
                default=default,
                style=QUESTIONARY_STYLE_CONFIRM,
                auto_enter=False,
            )
        )

    def schema_table(self, schema: Mapping[str, str], title: str = "Schema") -> None:
        """Render a column name -> type mapping."""
        t = Table(title=title, show_lines=False)
        t.add_column("Column", style="ok")
        t.add_column("Type", style="meta")

        for name, type_ in schema.items():
            t.add_row(name, type_)

        console.print(t)

    def columns_table(self, columns: Iterable[Any], title: str = "Columns") -> None:
        """
        Expects objects with .name .type .comment
        (like hudiglue.core.models.ColumnDef or FieldSchema)
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Column", style="ok")
        t.add_column("Type", style="meta")
        t.add_column("Comment")

        for c in columns:
            t.add_row(c.name, c.type, getattr(c, "comment", None) or "")

        console.print(t)

    def partitions_table(self, partitions: Iterable[Any], title: str = "Partitions") -> None:
        """
        Render catalog partitions or partition paths.

        Accepts either:
          - strings with relative partition paths, or
          - objects with `.values` and `.location` (PartitionRecord).
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Values", style="ok")
        t.add_column("Location", style="meta")

        for p in partitions:
            if isinstance(p, str):
                t.add_row(p, "")
            else:
                t.add_row("/".join(p.values), p.location or "")

        console.print(t)

    def sync_result(self, result: Any) -> None:
        """Summarize a hudiglue.core.sync.SyncResult."""
        self.kv(
            {
                "Table": result.table,
                "Created": "yes" if result.created else "no",
                "Schema updated": "yes" if result.schema_updated else "no",
                "Comments updated": "yes" if result.comments_updated else "no",
                "Partitions added": len(result.added),
                "Partitions updated": len(result.updated),
                "Partitions dropped": len(result.dropped),
                "Properties updated": "yes" if result.properties_updated else "no",
                "Last commit time stamped": "yes"
                if result.last_commit_time_updated
                else "no",
            }
        )


out = Out()
