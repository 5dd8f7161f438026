"""
Interactive pairing of functional and structural runs.

The operator first picks one of four pairing modes, then types the run
numbers for each role.  Input is canonicalised (commas and whitespace become
single spaces) but not checked against the dataset; missing run folders are
reported later, during materialization.
"""

from __future__ import annotations

from typing import Dict, Tuple

import click

from fmrimatic.errors import UnsupportedPairingMode
from fmrimatic.models import PairingMode, RunSelection
from fmrimatic.utils.input_helpers import prompt_choice, prompt_input
from fmrimatic.utils.naming import normalize_run_tokens

__all__ = ["prompt_pairing_mode", "collect_runs", "pair_runs"]

_MODES = list(PairingMode)

# (functional prompt, structural prompt) per supported mode
_PROMPTS: Dict[PairingMode, Tuple[str, str]] = {
    PairingMode.MANY_FUNC_ONE_STRUCT: (
        "Enter multiple functional run numbers",
        "Enter one structural run number",
    ),
    PairingMode.ONE_FUNC_MANY_STRUCT: (
        "Enter one functional run number",
        "Enter multiple structural run numbers",
    ),
    PairingMode.ONE_FUNC_ONE_STRUCT: (
        "Enter one functional run number",
        "Enter one structural run number",
    ),
}


def prompt_pairing_mode() -> PairingMode:
    """Ask for the pairing mode; the first mode is the default."""
    idx = prompt_choice(
        "Select how functional and structural runs should be paired:",
        [m.label for m in _MODES],
    )
    mode = _MODES[idx]
    click.secho(f"\nYou selected: {mode.label}", fg="cyan", bold=True)
    return mode


def collect_runs(mode: PairingMode) -> RunSelection:
    """Prompt for the run numbers of *mode*.

    Raises:
        UnsupportedPairingMode: *mode* is the many→many variant.
    """
    if not mode.supported:
        raise UnsupportedPairingMode("Multiple→Multiple not supported yet.")

    func_prompt, struct_prompt = _PROMPTS[mode]
    functional = normalize_run_tokens(prompt_input(func_prompt, default=""))
    structural = normalize_run_tokens(prompt_input(struct_prompt, default=""))

    click.secho("\nAssigned Variables:", fg="cyan", bold=True)
    click.echo(f"  run_number    = {functional}")
    click.echo(f"  str_for_coreg = {structural}")
    return RunSelection(mode=mode, functional_runs=functional, structural_runs=structural)


def pair_runs() -> RunSelection:
    """Run mode selection and run collection in one step.

    Raises:
        UnsupportedPairingMode: Propagated from :func:`collect_runs`; callers
            restart the dataset's flow from the top.
    """
    return collect_runs(prompt_pairing_mode())
