"""Command line tools for the traffic counts service."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    # Resolve lazily so ``cli.app`` stays the module, which tests patch.
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)


__all__ = []
