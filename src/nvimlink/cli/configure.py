"""`nvimlink configure` command implementation."""

import argparse
import sys

from pydantic import ValidationError

from nvimlink.cli.shared import configure_logging
from nvimlink.config import load_config, save_config
from nvimlink.models import NvimLinkConfig

API_KEY_CLI_WARNING = (
    "Warning: --api-key may leak secrets via shell history and process lists. "
    "Prefer the OBSIDIAN_REST_API_KEY environment variable."
)


def build_parser() -> argparse.ArgumentParser:
    """Build parser for the configure command."""
    parser = argparse.ArgumentParser(
        prog="nvimlink configure",
        description="Configure Neovim path, terminal, listen address, and file types",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--nvim-path", help="Path to the Neovim binary (skips auto-detection)")
    parser.add_argument(
        "--clear-nvim-path",
        action="store_true",
        help="Remove the stored Neovim path and auto-detect again",
    )
    parser.add_argument(
        "--terminal",
        help="Terminal emulator name or path (example: alacritty, kitty, wt.exe, pwsh.exe)",
    )
    parser.add_argument("--listen-on", help="Neovim listen address (example: 127.0.0.1:2006)")
    parser.add_argument(
        "--file-types",
        help="Comma-separated file extensions to open in Neovim (example: md,txt,json)",
    )
    excalidraw_group = parser.add_mutually_exclusive_group()
    excalidraw_group.add_argument(
        "--excalidraw",
        action="store_true",
        help="Also open .excalidraw.md drawings (requires md in --file-types)",
    )
    excalidraw_group.add_argument(
        "--no-excalidraw",
        action="store_true",
        help="Skip .excalidraw.md drawings (default)",
    )
    parser.add_argument("--vault", help="Vault directory that file paths are relative to")
    parser.add_argument(
        "--api-key",
        help="API key injected into Neovim's environment (not recommended; may leak)",
    )
    parser.add_argument(
        "--clear-api-key",
        action="store_true",
        help="Remove stored API key from config",
    )
    return parser


def _apply_updates(existing: NvimLinkConfig, args: argparse.Namespace) -> NvimLinkConfig:
    updates: dict = {}
    if args.nvim_path is not None:
        updates["nvim_path"] = args.nvim_path
    if args.clear_nvim_path:
        updates["nvim_path"] = None
    if args.terminal is not None:
        updates["terminal"] = args.terminal
    if args.listen_on is not None:
        updates["listen_on"] = args.listen_on
    if args.file_types is not None:
        updates["supported_file_types"] = args.file_types.split(",")
    if args.excalidraw:
        updates["excalidraw_enabled"] = True
    if args.no_excalidraw:
        updates["excalidraw_enabled"] = False
    if args.vault is not None:
        updates["vault_path"] = args.vault
    if args.api_key is not None:
        updates["api_key"] = args.api_key
    if args.clear_api_key:
        updates["api_key"] = None
    # Re-validate so normalizers run on the updated fields.
    return NvimLinkConfig.model_validate({**existing.model_dump(), **updates})


def run(argv: list[str]) -> int:
    """Execute the configure command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug)

    if args.clear_api_key and args.api_key is not None:
        print("Error: --api-key and --clear-api-key cannot be used together", file=sys.stderr)
        return 2
    if args.clear_nvim_path and args.nvim_path is not None:
        print(
            "Error: --nvim-path and --clear-nvim-path cannot be used together",
            file=sys.stderr,
        )
        return 2
    if args.api_key is not None:
        print(API_KEY_CLI_WARNING, file=sys.stderr)

    try:
        updated = _apply_updates(load_config(apply_env=False), args)
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    saved_path = save_config(updated)

    print(f"\nConfiguration saved to {saved_path}")
    print(f"  nvim_path: {updated.nvim_path or '(auto-detect)'}")
    print(f"  terminal: {updated.terminal}")
    print(f"  listen_on: {updated.listen_on}")
    print(f"  supported_file_types: {', '.join(updated.supported_file_types)}")
    print("  excalidraw_enabled: " + ("true" if updated.excalidraw_enabled else "false"))
    print(f"  vault_path: {updated.vault_path or '(current directory)'}")
    print(f"  api_key: {'set' if updated.api_key else 'not set'}")
    print("")
    return 0
