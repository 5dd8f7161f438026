"""\b
Command-line interface entry point for *fmrimatic*.

The group configures the global options (configuration file, verbosity, log
mirror) and registers the sub-commands.  Invoked without a sub-command it
starts the full interactive session, exactly like ``fmrimatic-cli run``.

Root location precedence: positional ``ROOT`` → ``--root`` →
``$FMRIMATIC_ROOT`` → interactive prompt (default from the configuration).
"""

from __future__ import annotations

import functools
import os
from pathlib import Path
from types import SimpleNamespace
from typing import Optional, Tuple

import click

from fmrimatic import __version__
from fmrimatic.assignments import AssignmentStore
from fmrimatic.collaborators.loader import load_sources
from fmrimatic.config import ConfigSchema, load_config
from fmrimatic.errors import FmrimaticError, SelectionAborted
from fmrimatic.operations import build_function_table
from fmrimatic.session import Session
from fmrimatic.utils import display
from fmrimatic.utils.input_helpers import prompt_input
from fmrimatic.utils.logging import setup_logging
from fmrimatic.utils.paths import expand_path, resolve_root

ROOT_ENV = "FMRIMATIC_ROOT"


# -----------------------------------------------------------------------------#
# Shared plumbing                                                               #
# -----------------------------------------------------------------------------#
def _root_options(func):
    """Attach the positional ``ROOT`` argument and the ``--root`` flag."""
    func = click.option(
        "--root",
        "root_opt",
        type=click.Path(file_okay=False),
        help="Root location to scan (same as the positional ROOT).",
    )(func)
    return click.argument("root_arg", metavar="[ROOT]", required=False)(func)


def _fatal_errors(func):
    """Translate library errors into Click exits.

    ``q`` aborts cleanly with status 0; every other library error becomes a
    one-line message with status 1.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SelectionAborted:
            click.echo("Aborted.")
            return None
        except (FmrimaticError, FileNotFoundError, RuntimeError) as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper


def _prepare(
    ctx: click.Context,
    root_arg: Optional[str],
    root_opt: Optional[str],
) -> Tuple[Path, ConfigSchema]:
    """Resolve the root, configure logging and load the configuration."""
    opts = ctx.obj
    raw = root_arg or root_opt or os.environ.get(ROOT_ENV)
    if not raw:
        default_root = load_config(opts.config_path).default_root
        raw = prompt_input("Root location", default=default_root)

    root = resolve_root(raw)
    setup_logging(
        root=root,
        verbose=opts.verbose,
        debug=opts.debug,
        extra_text_log=Path(opts.save_logfile) if opts.save_logfile else None,
    )
    return root, load_config(opts.config_path, root=root)


# -----------------------------------------------------------------------------#
# Group                                                                         #
# -----------------------------------------------------------------------------#
@click.group(invoke_without_command=True)
@click.version_option(__version__)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to YAML configuration file.",
)
@click.option("--verbose", is_flag=True, help="Show INFO-level log messages.")
@click.option("--debug", is_flag=True, help="Show DEBUG-level log messages.")
@click.option(
    "--save-logfile",
    type=click.Path(dir_okay=False),
    help="Mirror console log messages into this text file.",
)
@click.pass_context
def cli(  # noqa: D401 – imperative form is acceptable for CLI description
    ctx: click.Context,
    config_path: Optional[str],
    verbose: bool,
    debug: bool,
    save_logfile: Optional[str],
):
    """Catalog raw fMRI datasets and lay out their analysis folders."""
    ctx.obj = SimpleNamespace(
        config_path=config_path,
        verbose=verbose,
        debug=debug,
        save_logfile=save_logfile,
    )
    if ctx.invoked_subcommand is None:
        ctx.invoke(run_cmd)


# -----------------------------------------------------------------------------#
# Sub-commands                                                                  #
# -----------------------------------------------------------------------------#
@cli.command("run")
@_root_options
@click.pass_context
@_fatal_errors
def run_cmd(ctx: click.Context, root_arg: Optional[str] = None, root_opt: Optional[str] = None):
    """Run the full interactive session."""
    root, cfg = _prepare(ctx, root_arg, root_opt)
    Session(root, cfg).run()


@cli.command("list")
@_root_options
@click.pass_context
@_fatal_errors
def list_cmd(ctx: click.Context, root_arg: Optional[str], root_opt: Optional[str]):
    """Print the date-grouped dataset catalog."""
    root, cfg = _prepare(ctx, root_arg, root_opt)
    display.display_catalog(Session(root, cfg).scan())


@cli.command("assignments")
@_root_options
@click.pass_context
@_fatal_errors
def assignments_cmd(ctx: click.Context, root_arg: Optional[str], root_opt: Optional[str]):
    """Print the persisted dataset → project/subproject map."""
    root, cfg = _prepare(ctx, root_arg, root_opt)
    store = AssignmentStore.for_root(root, cfg.layout.map_filename)
    display.display_assignments(store.load())


@cli.command("operations")
@_root_options
@click.pass_context
@_fatal_errors
def operations_cmd(ctx: click.Context, root_arg: Optional[str], root_opt: Optional[str]):
    """Load the configured collaborator scripts and list their operations."""
    root, cfg = _prepare(ctx, root_arg, root_opt)
    registry = load_sources(cfg.sources, expand_path(cfg.cache_dir), base=root)
    display.display_operation_table(build_function_table(registry))


if __name__ == "__main__":  # pragma: no cover
    cli()
