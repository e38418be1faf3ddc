"""
Argument construction for watch invocations.

In scripted mode the watch arguments go on the command line. In
interactive mode the child is started with --interactive and the same
arguments are typed as one input line instead.
"""

from typing import List, Sequence

from ..config import WatchRunContext

WATCH_COMMAND = "watch"
INTERACTIVE_FLAG = "--interactive"


def build_watch_args(context: WatchRunContext, args: Sequence[str]) -> List[str]:
    """Full argv for the watched process. args are not validated."""
    argv = context.prefix_args() + [WATCH_COMMAND]
    if context.interactive:
        argv.append(INTERACTIVE_FLAG)
    else:
        argv.extend(args)
    return argv


def build_interactive_line(args: Sequence[str]) -> str:
    """The line typed into an interactive session, carriage-return terminated."""
    return " ".join([WATCH_COMMAND, *args]) + "\r"


def build_put_args(context: WatchRunContext, key: str, value: str) -> List[str]:
    return context.prefix_args() + ["put", key, value]
