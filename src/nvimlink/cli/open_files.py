"""`nvimlink open` command implementation."""

import argparse
import logging

from nvimlink.cli.shared import add_common_arguments, configure_logging
from nvimlink.config import load_config
from nvimlink.nvimlink import NvimLink

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build parser for the open command."""
    parser = argparse.ArgumentParser(
        prog="nvimlink open",
        description="Open files in an already running Neovim (owned or external)",
    )
    add_common_arguments(parser)
    parser.add_argument("files", nargs="+", metavar="FILE", help="Vault-relative file path")
    return parser


def run(argv: list[str]) -> int:
    """Execute the open command; non-zero when no file was opened."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug)

    config = load_config()
    if args.vault:
        config = config.model_copy(update={"vault_path": args.vault})
    link = NvimLink(config)

    opened = 0
    for path in args.files:
        future = link.open_file(path)
        if future is None:
            continue
        result = future.result()
        log.debug("remote open %s: %s", path, result.message)
        if result.ok:
            opened += 1
    return 0 if opened else 1
