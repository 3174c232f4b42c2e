# SPDX-FileCopyrightText: 2023-2025 Espressif Systems (Shanghai) CO LTD
# SPDX-License-Identifier: Apache-2.0

import os
from typing import IO, Any, Optional

from rich.console import Console

console_stderr: Optional[Console] = None
debug_on = False


def _console() -> Console:
    # Created on first use, so the library logs sensibly even if the
    # application never calls set_console().
    if console_stderr is None:
        set_console()
    return console_stderr  # type: ignore


def err(*args: Any) -> None:
    _console().print('[red]error: ', *args)


def warn(*args: Any) -> None:
    _console().print('[yellow]warning: ', *args)


def debug(*args: Any) -> None:
    console = _console()
    if debug_on:
        console.print('[bright_blue]debug: ', *args)


def eprint(*args: Any) -> None:
    _console().print(*args)


def set_console(file: Optional[IO[str]]=None, quiet: Optional[bool]=None, no_color: Optional[bool]=None,
                force_terminal: Optional[bool]=None, debug: Optional[bool]=None) -> None:
    """Configure the diagnostic console. By default messages go to standard
    error output. Options not given explicitly are taken from the
    SPDX_PARSE_QUIET, SPDX_PARSE_NO_COLOR and SPDX_PARSE_DEBUG environment
    variables."""
    global console_stderr
    global debug_on

    if quiet is None:
        quiet = bool(os.environ.get('SPDX_PARSE_QUIET'))
    if no_color is None:
        no_color = bool(os.environ.get('SPDX_PARSE_NO_COLOR'))
    if debug is None:
        debug = bool(os.environ.get('SPDX_PARSE_DEBUG'))

    width = None
    if file is not None:
        # https://rich.readthedocs.io/en/stable/console.html#file-output
        # Don't limit the output to console width if it doesn't go into a terminal
        width = 10000
    console_stderr = Console(file=file, stderr=file is None, width=width, quiet=quiet,
                             no_color=no_color, force_terminal=force_terminal, emoji=False,
                             soft_wrap=True)

    debug_on = debug
