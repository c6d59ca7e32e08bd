"""Top-level CLI router."""

import sys

from . import configure as configure_cmd
from . import launch as launch_cmd
from . import open_files as open_cmd
from . import status as status_cmd

COMMANDS = {
    "configure": configure_cmd.run,
    "launch": launch_cmd.run,
    "open": open_cmd.run,
    "status": status_cmd.run,
}


def main(argv: list[str] | None = None) -> int:
    """Route to a subcommand; anything else launches Neovim."""
    args = list(sys.argv[1:] if argv is None else argv)
    if args and args[0] in COMMANDS:
        return COMMANDS[args[0]](args[1:])
    return launch_cmd.run(args)


def entrypoint() -> None:
    """Console script entrypoint."""
    raise SystemExit(main())
