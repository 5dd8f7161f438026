"""
Module entry-point that makes the package runnable with

    python -m fmrimatic

The behaviour is identical to the *fmrimatic-cli* console script because the
Click group imported below performs all CLI dispatching.
"""

from fmrimatic.cli import cli

if __name__ == "__main__":  # pragma: no cover
    cli()
