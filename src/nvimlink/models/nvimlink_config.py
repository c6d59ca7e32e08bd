"""Configuration model for nvimlink."""

import os

from pydantic import BaseModel, Field, field_validator

DEFAULT_LISTEN_ON = "127.0.0.1:2006"
DEFAULT_SUPPORTED_FILE_TYPES = ["txt", "md", "css", "js", "ts", "tsx", "jsx", "json"]


def default_terminal() -> str:
    return "wt.exe" if os.name == "nt" else "alacritty"


class NvimLinkConfig(BaseModel):
    """Runtime configuration for nvimlink."""

    nvim_path: str | None = None
    terminal: str = Field(default_factory=default_terminal)
    listen_on: str = DEFAULT_LISTEN_ON
    supported_file_types: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SUPPORTED_FILE_TYPES)
    )
    excalidraw_enabled: bool = False
    vault_path: str | None = None
    api_key: str | None = None

    @field_validator("supported_file_types")
    @classmethod
    def _normalize_file_types(cls, value: list[str]) -> list[str]:
        normalized: list[str] = []
        for item in value:
            ext = item.strip().lstrip(".").lower()
            if ext and ext not in normalized:
                normalized.append(ext)
        return normalized

    @field_validator("listen_on")
    @classmethod
    def _require_listen_address(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("listen_on must not be empty (expected host:port)")
        return value

    def resolved_vault_path(self) -> str:
        return os.path.abspath(os.path.expanduser(self.vault_path or os.getcwd()))
