"""A bytecode virtual machine for menu-driven, size-constrained text interfaces."""

__version__ = "0.1.0"