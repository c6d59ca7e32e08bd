"""Model package for nvimlink."""

from nvimlink.models.binary_location import MANUAL_VERSION, BinaryLocation
from nvimlink.models.launch_plan import LaunchPlan
from nvimlink.models.listen_address import DEFAULT_HOST, ListenAddress
from nvimlink.models.nvimlink_config import (
    DEFAULT_LISTEN_ON,
    DEFAULT_SUPPORTED_FILE_TYPES,
    NvimLinkConfig,
    default_terminal,
)
from nvimlink.models.open_request import EXCALIDRAW_SUFFIX, OpenRequest
from nvimlink.models.terminal_family import TerminalFamily

__all__ = [
    "BinaryLocation",
    "DEFAULT_HOST",
    "DEFAULT_LISTEN_ON",
    "DEFAULT_SUPPORTED_FILE_TYPES",
    "EXCALIDRAW_SUFFIX",
    "LaunchPlan",
    "ListenAddress",
    "MANUAL_VERSION",
    "NvimLinkConfig",
    "OpenRequest",
    "TerminalFamily",
    "default_terminal",
]
