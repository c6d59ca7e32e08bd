"""`nvimlink status` command implementation."""

import argparse

from nvimlink.cli.shared import add_common_arguments, configure_logging, format_status_line
from nvimlink.config import CONFIG_FILE, load_config
from nvimlink.nvimlink import NvimLink


def run(argv: list[str]) -> int:
    """Print resolved binaries and whether a Neovim is listening."""
    parser = argparse.ArgumentParser(
        prog="nvimlink status",
        description="Show resolved binaries and Neovim reachability",
    )
    add_common_arguments(parser)
    args = parser.parse_args(argv)
    configure_logging(args.debug)

    config = load_config()
    if args.vault:
        config = config.model_copy(update={"vault_path": args.vault})
    link = NvimLink(config)

    print(f"\nNeovim information ({CONFIG_FILE}):")
    for label, value in link.describe():
        print(format_status_line(label, value))
    reachable = link.router.is_reachable()
    print(format_status_line("Reachable", "yes" if reachable else "no"))
    print("")
    return 0
