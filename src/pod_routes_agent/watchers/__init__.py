"""Watcher implementations used by the pod routes agent."""

from .file import FileRouteWatcher  # noqa: F401

__all__ = ["FileRouteWatcher"]
