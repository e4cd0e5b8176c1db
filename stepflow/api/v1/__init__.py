"""API v1 routers."""

from . import machines

__all__ = ["machines"]
