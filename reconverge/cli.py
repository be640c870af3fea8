#!/usr/bin/env python3

import click

from reconverge.commands.config import config_cmd
from reconverge.commands.converge import converge_handler
from reconverge.commands.manifests import manifests_handler


@click.group(invoke_without_command=True)
@click.version_option(package_name="reconverge")
@click.pass_context
def cli(ctx):
    """reconverge - Bring this machine in line with its package manifests.

    Reads declarative manifests (apt, snap, pipx packages, git repositories,
    GitHub releases) and installs or updates everything they list. Running
    without a command converges the host.
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(converge_handler)


cli.add_command(converge_handler, name='converge')
cli.add_command(manifests_handler, name='manifests')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
