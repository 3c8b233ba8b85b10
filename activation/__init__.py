"""activation: resolve the ordered set of optional modules to activate."""

__version__ = "0.1.0"
