"""Utility modules for swapflow."""

from swapflow.utils.locks import ContextLockRegistry, ExclusiveContext

__all__ = ["ContextLockRegistry", "ExclusiveContext"]
