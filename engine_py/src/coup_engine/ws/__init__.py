"""
WebSocket server and event handling for the game hub.
"""

from .events import *
from .server import app

__all__ = ["app"]
