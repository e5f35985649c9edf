"""Questionary / prompt_toolkit theme for hudiglue.

Selection prompts use the cyan accent of the rich console theme; destructive
confirmations (dropping partitions) use red.
"""

from __future__ import annotations

from prompt_toolkit.styles import Style

_MUTED = "ansibrightblack"


def _prompt_style(accent: str, *, with_checkboxes: bool) -> Style:
    rules = {
        "qmark": f"bold {accent}",
        "question": "bold",
        "answer": f"bold {accent}",
        "pointer": f"bold {accent}",
        "separator": _MUTED,
        "instruction": _MUTED,
        "error": "bold ansired",
    }
    if with_checkboxes:
        rules.update(
            {
                "highlighted": f"bold {accent}",
                "selected": f"bold {accent}",
                "checkbox": _MUTED,
                "checkbox-selected": f"bold {accent}",
                "disabled": _MUTED,
            }
        )
    return Style.from_dict(rules)


QUESTIONARY_STYLE_SELECT = _prompt_style("ansibrightcyan", with_checkboxes=True)
QUESTIONARY_STYLE_CONFIRM = _prompt_style("ansibrightred", with_checkboxes=False)
