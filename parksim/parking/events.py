"""
Parking Domain Events

Emitted by the ledger when a car arrives at or leaves a spot. Evictions
caused by map edits do not emit events.
"""

from dataclasses import dataclass
from enum import Enum

from .spots import ParkingSpot


class ParkingEventType(Enum):
    CAR_REACHED_PARKING_SPOT = "car_reached_parking_spot"
    CAR_LEFT_PARKING_SPOT = "car_left_parking_spot"


@dataclass(frozen=True)
class ParkingEvent:
    event_type: ParkingEventType
    car_id: int
    spot: ParkingSpot

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type.value,
            "car_id": self.car_id,
            "spot": self.spot.to_dict(),
        }
