"""Resolved executable model."""

from dataclasses import dataclass

MANUAL_VERSION = "manual"


@dataclass(frozen=True)
class BinaryLocation:
    """Where the Neovim executable lives, or why it could not be found."""

    path: str
    version: str | None = None
    error: str | None = None

    @property
    def resolved(self) -> bool:
        return bool(self.path)
