"""Qt integration for catfeed front ends (requires PySide6)."""

from .qt_dispatcher import QtDispatcher

__all__ = ['QtDispatcher']
