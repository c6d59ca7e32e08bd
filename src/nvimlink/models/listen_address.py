"""Listen address model."""

from dataclasses import dataclass

DEFAULT_HOST = "127.0.0.1"


@dataclass(frozen=True)
class ListenAddress:
    """A Neovim ``--listen`` target: ``host:port`` or a local socket path."""

    raw: str
    host: str
    port: int | None

    @classmethod
    def parse(cls, value: str) -> "ListenAddress":
        raw = value.strip()
        host, sep, port_text = raw.rpartition(":")
        if not sep or not port_text.isdigit():
            return cls(raw=raw, host=DEFAULT_HOST, port=None)
        # IPv6 literals are written as [::1]:port.
        host = host.strip("[]") or DEFAULT_HOST
        return cls(raw=raw, host=host, port=int(port_text))

    @property
    def is_tcp(self) -> bool:
        return self.port is not None

    def __str__(self) -> str:
        return self.raw
