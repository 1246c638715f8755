"""Coup bluffing-game engine and the WebSocket hub that hosts it."""

__version__ = "1.0.0"
