#==============================================================================
# ParkSim - Configuration Loader
#==============================================================================
# File: config.py
# Description: YAML settings file with dotted-key lookup
# Author: Evan Petersen
# Date: October 2026
#==============================================================================

import yaml
from pathlib import Path
from typing import Dict, Any

_MISSING = object()


class Config:
    """A YAML settings file, e.g. configs/parking.yaml."""

    def __init__(self, config_path: str):
        self.config_path = Path(config_path)
        if not self.config_path.is_file():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            # An empty file is an empty config
            self.data: Dict[str, Any] = yaml.safe_load(f) or {}

    def _lookup(self, dotted: str) -> Any:
        node: Any = self.data
        for part in dotted.split('.'):
            if not isinstance(node, dict) or part not in node:
                return _MISSING
            node = node[part]
        return node

    def get(self, key: str, default: Any = None) -> Any:
        """
        Value at a dotted path, e.g. 'parking.parking_spot_length'.

        Missing keys and explicit nulls both yield the default.
        """
        value = self._lookup(key)
        return default if value is _MISSING or value is None else value

    def section(self, name: str) -> Dict[str, Any]:
        """Top-level mapping, or {} when the file has no such section."""
        value = self.get(name, {})
        if not isinstance(value, dict):
            raise ValueError(f"Section '{name}' in {self.config_path} is not a mapping")
        return value

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
