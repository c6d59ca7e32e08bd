"""File-open request model."""

import posixpath
from dataclasses import dataclass

EXCALIDRAW_SUFFIX = ".excalidraw.md"


@dataclass(frozen=True)
class OpenRequest:
    """A single vault-relative file the user asked to open."""

    path: str
    extension: str
    is_excalidraw: bool = False

    @classmethod
    def from_path(cls, path: str) -> "OpenRequest":
        normalized = path.replace("\\", "/")
        _, ext = posixpath.splitext(normalized)
        extension = ext.lstrip(".").lower()
        is_excalidraw = extension == "md" and normalized.lower().endswith(EXCALIDRAW_SUFFIX)
        return cls(path=normalized, extension=extension, is_excalidraw=is_excalidraw)

    @property
    def basename(self) -> str:
        return posixpath.basename(self.path)
