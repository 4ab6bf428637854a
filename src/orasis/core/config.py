"""Configuration management for the Orasis plugin host.

This module provides centralized configuration using Pydantic Settings.
Values are loaded from environment variables with the ORASIS_ prefix, so the
host can be tuned without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (ORASIS_* prefix)
2. .env file in the working directory
3. Default values defined in OrasisConfig

Example .env file:
    ORASIS_OVERLAY_WIDTH=120
    ORASIS_OVERLAY_HEIGHT=40
    ORASIS_TICK_INTERVAL=0.05
    ORASIS_UNLOAD_FAILED_PLUGINS=false

Global Configuration Instance
------------------------------
A global `config` instance is created at import time.  ``PluginHost`` and
``DispatchLoop`` fall back to it when no explicit config is passed.

Usage Example
-------------
    from orasis.core.config import config

    print(config.tick_interval)
    print(config.max_events_per_cycle)
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class OrasisConfig(BaseSettings):
    """Main configuration for the plugin host and its dispatch loop.

    Attributes
    ----------
    Canvas Settings:
        canvas_width : int
            Width in pixels of the blank canvas a host creates by default
        canvas_height : int
            Height in pixels of the blank canvas a host creates by default
        overlay_width : int
            Initial overlay width in terminal cells
        overlay_height : int
            Initial overlay height in terminal cells
        overlay_fill : str
            Character used for empty overlay cells

    Dispatch Settings:
        tick_interval : float
            Seconds between Tick events
        poll_timeout : float
            Longest wait for input in a single loop cycle
        max_events_per_cycle : int
            Upper bound on plugin-emitted events processed per cycle, so a
            plugin that keeps re-emitting cannot starve input handling
        draw_background_plugins : bool
            Also call draw() on background plugins every frame

    Error Handling:
        unload_failed_plugins : bool
            Remove a plugin from the host after its first contract violation
            (otherwise it stays loaded in the FAILED state)
        log_dead_letters : bool
            Log a warning for targeted events nobody could receive

    Examples
    --------
        >>> custom_config = OrasisConfig(overlay_width=120, tick_interval=0.05)
        >>> custom_config.overlay_width
        120
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ORASIS_",
        case_sensitive=False,
        extra="ignore",
    )

    # Canvas settings
    canvas_width: int = Field(default=640, ge=0, description="Default canvas width in pixels")
    canvas_height: int = Field(default=480, ge=0, description="Default canvas height in pixels")
    overlay_width: int = Field(
        default=80, ge=0, le=65535, description="Initial overlay width in cells"
    )
    overlay_height: int = Field(
        default=24, ge=0, le=65535, description="Initial overlay height in cells"
    )
    overlay_fill: str = Field(default=" ", description="Character for empty overlay cells")

    # Dispatch settings
    tick_interval: float = Field(default=0.1, gt=0, description="Seconds between Tick events")
    poll_timeout: float = Field(
        default=0.02, ge=0, description="Longest input wait per loop cycle in seconds"
    )
    max_events_per_cycle: int = Field(
        default=256, ge=1, description="Emitted events processed per loop cycle"
    )
    draw_background_plugins: bool = Field(
        default=True,
        description="Call draw() on background plugins as well as the active one",
    )

    # Error handling
    unload_failed_plugins: bool = Field(
        default=True,
        description="Unload a plugin after it violates the contract",
    )
    log_dead_letters: bool = Field(
        default=True,
        description="Log targeted events whose target is not loaded",
    )

    @field_validator("overlay_fill")
    @classmethod
    def _single_character(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError(f"overlay_fill must be a single character, got {value!r}")
        return value


# Global configuration instance
config = OrasisConfig()
