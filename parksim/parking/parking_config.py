"""
Parking Configuration

Spot dimensions and logging behavior for the parking model.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from ..config import Config
from ..logging_utils import LogLevel, SimLogger


@dataclass
class ParkingConfig:
    """
    Parking model configuration.

    Dimensions are in meters. Changing them changes spot identity, so a
    snapshot is only valid under the configuration that produced it.
    """
    # Curb spot length; the first and last spot lengths of a lane stay empty
    parking_spot_length: float = 8.0

    # Depth of a rendered parking lot slot
    lot_spot_length: float = 6.4

    # Gap between a lot slot's edge and the drawn car body
    lot_spot_buffer: float = 0.5

    # Length assumed for demo vehicles with no explicit length
    default_car_length: float = 4.5

    # Logging
    log_dir: Optional[str] = None
    console_logging: bool = True
    console_level: str = "INFO"

    # Where save_snapshot writes when no path is given
    snapshot_path: str = "output/parking_snapshot.yaml"

    def validate(self) -> list[str]:
        """Return a list of problems; empty when the config is usable."""
        errors = []
        if self.parking_spot_length <= 0:
            errors.append(f"parking_spot_length must be positive, got {self.parking_spot_length}")
        if self.lot_spot_length <= 0:
            errors.append(f"lot_spot_length must be positive, got {self.lot_spot_length}")
        if self.lot_spot_buffer < 0 or 2 * self.lot_spot_buffer >= self.lot_spot_length:
            errors.append(
                f"lot_spot_buffer must be in [0, lot_spot_length / 2), got {self.lot_spot_buffer}"
            )
        if not 0 < self.default_car_length <= self.parking_spot_length:
            errors.append(
                f"default_car_length must be in (0, parking_spot_length], "
                f"got {self.default_car_length}"
            )
        try:
            LogLevel.from_string(self.console_level)
        except ValueError as e:
            errors.append(str(e))
        return errors

    def create_logger(self, module_name: str) -> SimLogger:
        """Module logger honoring this config's logging settings."""
        return SimLogger(
            module_name,
            log_dir=Path(self.log_dir) if self.log_dir else None,
            console_output=self.console_logging,
            file_output=self.log_dir is not None,
            console_level=LogLevel.from_string(self.console_level),
        )

    def to_dict(self) -> dict:
        return {
            "parking_spot_length": self.parking_spot_length,
            "lot_spot_length": self.lot_spot_length,
            "lot_spot_buffer": self.lot_spot_buffer,
            "default_car_length": self.default_car_length,
            "log_dir": self.log_dir,
            "console_logging": self.console_logging,
            "console_level": self.console_level,
            "snapshot_path": self.snapshot_path,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ParkingConfig":
        return cls(
            parking_spot_length=float(data.get("parking_spot_length", 8.0)),
            lot_spot_length=float(data.get("lot_spot_length", 6.4)),
            lot_spot_buffer=float(data.get("lot_spot_buffer", 0.5)),
            default_car_length=float(data.get("default_car_length", 4.5)),
            log_dir=data.get("log_dir"),
            console_logging=data.get("console_logging", True),
            console_level=data.get("console_level", "INFO"),
            snapshot_path=data.get("snapshot_path", "output/parking_snapshot.yaml"),
        )

    @classmethod
    def load(cls, path: str | Path) -> "ParkingConfig":
        """
        Load from a YAML file with a top-level ``parking`` section.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the loaded values fail validation
        """
        config = cls.from_dict(Config(str(path)).section("parking"))
        errors = config.validate()
        if errors:
            raise ValueError(f"Invalid parking config {path}: {'; '.join(errors)}")
        return config

    def save(self, path: str | Path) -> None:
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump({"parking": self.to_dict()}, f, default_flow_style=False)
