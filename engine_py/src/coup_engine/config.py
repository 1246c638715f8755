"""
Server configuration loaded from environment variables.
"""

import os
from typing import List

from pydantic import BaseModel, Field, field_validator


class ServerConfig(BaseModel):
    """Settings for the WebSocket server and its background sweeps."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(default="info")
    reload: bool = Field(default=False)
    game_timeout: float = Field(
        default=30 * 60,
        gt=0,
        description="Seconds a game may sit idle before it is cleaned up"
    )
    cleanup_interval: float = Field(
        default=5 * 60,
        gt=0,
        description="Seconds between idle sweeps"
    )
    disconnect_grace: float = Field(
        default=90,
        ge=0,
        description="Seconds a disconnected player keeps their seat"
    )
    default_max_players: int = Field(default=6, ge=2, le=6)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.lower()
        if level not in ("critical", "error", "warning", "info", "debug", "trace"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def from_env(cls, environ=None) -> 'ServerConfig':
        """Build a config from ``environ`` (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ
        values = {}
        if "HOST" in env:
            values["host"] = env["HOST"]
        if "PORT" in env:
            values["port"] = int(env["PORT"])
        if "LOG_LEVEL" in env:
            values["log_level"] = env["LOG_LEVEL"]
        if "RELOAD" in env:
            values["reload"] = env["RELOAD"].lower() == "true"
        if "GAME_TIMEOUT" in env:
            values["game_timeout"] = float(env["GAME_TIMEOUT"])
        if "CLEANUP_INTERVAL" in env:
            values["cleanup_interval"] = float(env["CLEANUP_INTERVAL"])
        if "DISCONNECT_GRACE" in env:
            values["disconnect_grace"] = float(env["DISCONNECT_GRACE"])
        if "DEFAULT_MAX_PLAYERS" in env:
            values["default_max_players"] = int(env["DEFAULT_MAX_PLAYERS"])
        if "CORS_ORIGINS" in env:
            values["cors_origins"] = [o.strip() for o in env["CORS_ORIGINS"].split(",") if o.strip()]
        return cls(**values)
