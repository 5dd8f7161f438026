"""
Generic console-input utilities.

Only user-interaction primitives live here so that business logic in the
workflow modules remains testable: tests replace these callables with
scripted answers.  All prompts add a leading blank line to keep console
output readable during long interactive sessions.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

import click

__all__ = ["prompt_input", "prompt_choice", "prompt_yes_no"]


# -----------------------------------------------------------------------------#
# Public API                                                                    #
# -----------------------------------------------------------------------------#
def prompt_input(
    message: str,
    type: Any = str,  # noqa: A002 – mirrors click.prompt arg name
    choices: Optional[Iterable[str]] = None,
    default: Any = None,
    show_choices: bool = True,
) -> Any:
    """Display an interactive prompt and return validated input.

    Args:
        message: Core prompt text (without suffix or choice list).
        type: Desired Python type for casting the response. ``str`` by default.
        choices: Optional iterable of accepted string values.  When provided,
            the response must match one of these exactly.
        default: Default value returned when the input is empty.
        show_choices: When ``True`` append ``(a, b, c)`` after *message*.

    Returns:
        The parsed value, already cast to *type* when requested.

    Notes:
        The function loops until valid input is received.  Any error messages
        are printed to stderr via :pymod:`click`.
    """
    choices_list = list(choices) if choices is not None else None

    while True:
        click.echo()

        prompt_text = message
        if choices_list and show_choices:
            prompt_text += f" ({', '.join(str(c) for c in choices_list)})"

        raw = click.prompt(
            prompt_text,
            default=default,
            show_default=default not in (None, ""),
            prompt_suffix="\n> ",
            type=str,
        )

        if choices_list:
            if raw not in choices_list:
                click.echo(f"[ERROR] {raw!r} is not one of {choices_list}", err=True)
                continue
            return raw

        if type is not str:
            try:
                return type(raw)
            except Exception as exc:  # noqa: BLE001 – broad on purpose for CLI
                click.echo(f"[ERROR] invalid input ({exc})", err=True)
                continue

        return raw


def prompt_choice(message: str, options: Sequence[str], default: int = 0) -> int:
    """Show *options* as a numbered menu and return the 0-based pick.

    Pressing enter accepts *default*.  Invalid numbers re-prompt.

    Args:
        message: Heading printed above the menu.
        options: Labels in display order.
        default: 0-based index pre-selected when the input is empty.

    Returns:
        Index into *options*.
    """
    if not options:
        raise ValueError("prompt_choice() needs at least one option")

    click.secho(f"\n{message}", fg="yellow")
    for i, label in enumerate(options, start=1):
        marker = ">" if i - 1 == default else " "
        click.echo(f"  {marker} {i}) {label}")

    while True:
        raw = click.prompt(
            "Choice",
            default=str(default + 1),
            show_default=True,
            prompt_suffix="\n> ",
            type=str,
        ).strip()
        if raw.isdigit() and 1 <= int(raw) <= len(options):
            return int(raw) - 1
        click.echo(
            f"[ERROR] Pick a number between 1 and {len(options)}.", err=True
        )


def prompt_yes_no(question: str) -> bool:
    """Display *question* and return ``True`` for “y”, ``False`` for “n”."""
    return prompt_input(question, choices=["y", "n"]) == "y"
