"""`nvimlink launch` command implementation."""

import argparse
import logging
import os
import time

from nvimlink import __version__
from nvimlink.cli.shared import add_common_arguments, configure_logging
from nvimlink.config import load_config
from nvimlink.nvimlink import NvimLink
from nvimlink.ports import is_port_in_use

log = logging.getLogger(__name__)

STARTUP_TIMEOUT_SECONDS = 10.0
STARTUP_POLL_SECONDS = 0.1
WAIT_POLL_SECONDS = 0.5


def build_parser() -> argparse.ArgumentParser:
    """Build parser for launch mode."""
    parser = argparse.ArgumentParser(
        prog="nvimlink",
        description="Launch a linked Neovim in a terminal and open files in it",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    add_common_arguments(parser)
    parser.add_argument("files", nargs="*", metavar="FILE", help="Vault-relative file to open")
    return parser


def _wait_until_listening(link: NvimLink, timeout: float = STARTUP_TIMEOUT_SECONDS) -> bool:
    """Poll the listen address until Neovim accepts connections."""
    address = link.address
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if not link.state.has_process():
            return False
        if address.is_tcp:
            if is_port_in_use(address.port, address.host):
                return True
        elif os.path.exists(address.raw):
            return True
        time.sleep(STARTUP_POLL_SECONDS)
    return False


def run(argv: list[str]) -> int:
    """Launch the owned Neovim, open any files, and wait for it to exit."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug)

    config = load_config()
    if args.vault:
        config = config.model_copy(update={"vault_path": args.vault})
    link = NvimLink(config)

    if not link.launch():
        return 1

    try:
        if args.files:
            if _wait_until_listening(link):
                futures = [link.open_file(path) for path in args.files]
                for future in futures:
                    if future is not None:
                        future.result()
            else:
                log.warning("Neovim did not start listening on %s", link.address)
        while not link.wait(timeout=WAIT_POLL_SECONDS):
            pass
    except KeyboardInterrupt:
        link.close()
    return 0
