"""Error taxonomy for nvimlink.

Every error is caught at the boundary of the public operation that raised it
(``launch``, ``open_file``, ``close``) and turned into a single user notice.
"""


class NvimLinkError(RuntimeError):
    """Base class for all nvimlink failures."""


class ConfigurationError(NvimLinkError):
    """A required binary (Neovim or the terminal) is not resolved."""


class SpawnError(NvimLinkError):
    """The operating system could not start the terminal process."""

    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    OTHER = "other"

    def __init__(self, message: str, kind: str = OTHER) -> None:
        super().__init__(message)
        self.kind = kind


class AttachError(NvimLinkError):
    """The RPC client could not connect to the owned instance."""


class ProbeFailure(NvimLinkError):
    """The post-spawn liveness check did not get an answer."""


class ReachabilityFailure(NvimLinkError):
    """Neither an owned nor an external instance is listening."""


class RemoteOpenFailure(NvimLinkError):
    """A one-shot ``--remote`` invocation failed."""

    NOT_FOUND = "not_found"
    CONNECTION_REFUSED = "connection_refused"
    FILE_MISSING = "file_missing"
    GENERIC = "generic"

    def __init__(self, message: str, kind: str) -> None:
        super().__init__(message)
        self.kind = kind
