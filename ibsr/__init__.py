"""Clocks, BPF counter map decoding and XDP program safety checks for inbound traffic monitoring."""

__version__ = "0.1.0"

__all__ = ["__version__"]