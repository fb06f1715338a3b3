"""A small HTTP/1.0 server that runs simple tasks on per-route worker pools."""

__version__ = "0.1.0"
__all__ = ["__version__"]