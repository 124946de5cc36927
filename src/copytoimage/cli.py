# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT
"""
CLI interface for copy-to-image.

This module provides the `copy-to-image` command, which copies a file from the host into an
existing tagged image while keeping the image's run configuration:

    copy-to-image -image app:v1 -src ./tool -dest /usr/local/bin/tool

The flags keep their historical single-dash spelling (`-image`, `-src`, `-dest`, `-z`, `-cp`);
the double-dash forms are accepted as well. The command is only responsible for turning the
flags into a `PatchRequest`, reporting progress, and mapping workflow errors to exit codes.
"""

import logging
import sys

import click

from copytoimage.engine import DEFAULT_ENDPOINT
from copytoimage.errors import PatchError
from copytoimage.patcher import patch
from copytoimage.request import DEFAULT_CP, PatchRequest

# Make "-h" behave like "--help"
CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def _configure_logging(verbose: int, quiet: int) -> None:
    """
    Set the root logging level from the verbosity counters: WARNING by default, each `-v` one
    level more detailed, each `-q` one level less.
    """
    level = max(logging.DEBUG, logging.WARNING - 10 * verbose + 10 * quiet)
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s: %(message)s")


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(
    package_name="copy-to-image",
    prog_name="copy-to-image",
    message="%(prog)s %(version)s",
)
@click.option("-image", "--image", default="", help="The docker image to copy into (repo:tag)")
@click.option(
    "-src",
    "--src",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    default=None,
    help="The source file to copy",
)
@click.option("-dest", "--dest", default="", help="The destination of the file in the container")
@click.option("-z", "--z", "relabel", is_flag=True, help="Use the :z mount option")
@click.option("-cp", "--cp", default=DEFAULT_CP, show_default=True, help="Path to cp in the image")
@click.option(
    "--endpoint",
    envvar="DOCKER_HOST",
    default=DEFAULT_ENDPOINT,
    show_default=True,
    help="Container engine control socket",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Give up waiting for the copy after this many seconds",
)
@click.option("-v", "--verbose", count=True, help="Increase logging level")
@click.option("-q", "--quiet", count=True, help="Decrease logging level")
def cli(
    image: str,
    src: str | None,
    dest: str,
    relabel: bool,
    cp: str,
    endpoint: str,
    timeout: float | None,
    verbose: int,
    quiet: int,
) -> None:
    """
    Copy a host file into an existing tagged image, preserving its metadata.

    The file is copied by the image's own cp inside a throwaway container, which is then
    committed over the same tag.
    """
    _configure_logging(verbose=verbose, quiet=quiet)

    request = PatchRequest(image=image, src=src or "", dest=dest, relabel=relabel, cp=cp)
    try:
        patch(request, endpoint=endpoint, timeout=timeout, progress=click.echo)
    except PatchError as err:
        click.echo(f"Error: {err}", err=True)
        sys.exit(err.exit_code)


def main() -> None:
    """Entry point for the copy-to-image CLI when installed as a script."""
    cli()


if __name__ == "__main__":
    main()
