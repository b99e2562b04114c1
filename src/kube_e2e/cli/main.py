"""Main entry point for the kube-e2e CLI.

Commands:
    kube-e2e names: Generate an isolated namespace/release name pair
    kube-e2e state: Dump a namespace's state for failure diagnosis
    kube-e2e cleanup: Delete a leftover test namespace

Example:
    $ kube-e2e --help
    $ kube-e2e state --namespace non-helm-default-20261018t101500-a1b2c3d4
"""

from __future__ import annotations

import sys
from importlib.metadata import version as get_version

import click

from kube_e2e.cli.commands import cleanup_command, names_command, state_command


def _get_version() -> str:
    """Get the kube-e2e package version.

    Returns:
        Version string from package metadata, or 'unknown' if not installed.
    """
    try:
        return get_version("kube-e2e")
    except Exception:
        return "unknown"


@click.group(
    name="kube-e2e",
    help="kube-e2e - Phased feature tests for Kubernetes deployments.",
    epilog="Use 'kube-e2e <command> --help' for command-specific help.",
    context_settings={
        "help_option_names": ["-h", "--help"],
    },
)
@click.version_option(
    version=_get_version(),
    prog_name="kube-e2e",
    message="%(prog)s %(version)s",
)
def cli() -> None:
    """Root command group for the kube-e2e CLI."""


cli.add_command(names_command)
cli.add_command(state_command)
cli.add_command(cleanup_command)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the kube-e2e CLI.

    Args:
        argv: Command-line arguments (uses sys.argv if None).
    """
    try:
        cli(args=argv, standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
