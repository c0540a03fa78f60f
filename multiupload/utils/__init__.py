"""Shared helpers."""
from .events import ListenerRegistry

__all__ = ["ListenerRegistry"]
