"""Configuration persistence manager for the pixel effects pipeline.

This module handles loading and saving of render configuration and stops
to/from JSON files.
"""

import json
import logging
from dataclasses import asdict, fields
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from models import (
    CONFIG_FILE,
    DisplacementParams,
    RenderConfig,
    Stop,
    StopKind,
)

logger = logging.getLogger(__name__)


def _to_json(value):
    """Convert enums (also nested in dicts/lists) to their values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json(item) for item in value]
    return value


class ConfigManager:
    """Handles loading and saving of render configuration and stops."""

    def __init__(self, config_path: Path = CONFIG_FILE):
        """Initialize config manager.

        Args:
            config_path: Path to configuration file (defaults to
                ~/.pixel_effects_config.json)
        """
        self.config_path = Path(config_path)

    def _read(self) -> dict:
        try:
            if self.config_path.exists():
                with open(self.config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    logger.info("Loaded configuration from %s", self.config_path)
                    return data
                logger.warning("Ignoring config file %s: not an object", self.config_path)
        except (OSError, ValueError) as e:
            logger.warning("Could not load config file: %s", e)
        return {}

    def load(self) -> RenderConfig:
        """Load configuration from file, returning defaults if not found.

        Returns:
            RenderConfig with loaded or default values. Fields with invalid
            values keep their defaults.
        """
        config = RenderConfig()
        data = self._read().get("render", {})
        if not isinstance(data, dict):
            return config

        for item in fields(RenderConfig):
            if item.name not in data:
                continue
            default = getattr(config, item.name)
            value = data.get(item.name, default)
            try:
                if isinstance(default, Enum):
                    value = type(default)(value)
                elif isinstance(default, DisplacementParams):
                    value = DisplacementParams(**{**asdict(default), **value})
            except (TypeError, ValueError) as e:
                logger.warning("Invalid value for %s: %s", item.name, e)
                continue
            setattr(config, item.name, value)
        return config

    def load_stops(self) -> "list[Stop] | None":
        """Load saved stops.

        Returns:
            List of stops, or None when none are saved (callers fall back to
            the default stop set)
        """
        data = self._read().get("stops")
        if not isinstance(data, list):
            return None

        stops = []
        for index, entry in enumerate(data):
            try:
                stops.append(
                    Stop(
                        id=int(entry.get("id", index)),
                        percentage=float(entry["percentage"]),
                        kind=StopKind(entry.get("kind", StopKind.CHARACTER.value)),
                        value=entry.get("value", " "),
                        color=entry.get("color", "#ffffff"),
                        background=entry.get("background", "#000000"),
                    )
                )
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping invalid stop %d: %s", index, e)
        return stops

    def save(
        self, config: RenderConfig, stops: "list[Stop] | None" = None
    ) -> Tuple[bool, Optional[str]]:
        """Save configuration (and optionally stops) to file.

        Args:
            config: RenderConfig to save
            stops: Stops to save alongside, previously saved stops are kept
                when None

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        data = {"render": _to_json(asdict(config))}
        if stops is not None:
            data["stops"] = [_to_json(asdict(stop)) for stop in stops]
        else:
            saved = self._read().get("stops")
            if saved is not None:
                data["stops"] = saved

        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            return True, None
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not save config file: %s", e)
            return False, str(e)
