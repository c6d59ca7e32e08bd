"""nvimlink: launch a linked Neovim instance and route files to it."""

__version__ = "0.1.0"
