"""
Vehicle Records

Vehicles as the parking model sees them: an id, a length, and optionally
the person who owns the car.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .spots import ParkingSpot, spot_from_dict


class VehicleType(Enum):
    CAR = "car"
    BUS = "bus"
    BIKE = "bike"

    @property
    def uses_parking_spots(self) -> bool:
        # Buses lay over at their route ends; bikes use racks
        return self == VehicleType.CAR

    @classmethod
    def from_string(cls, value: str) -> "VehicleType":
        """Parse vehicle type from string (case-insensitive)."""
        normalized = value.lower().strip()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(
            f"Invalid vehicle type: '{value}'. "
            f"Valid types: {[m.value for m in cls]}"
        )


@dataclass(frozen=True)
class Vehicle:
    """
    A vehicle that can occupy a parking spot.

    length decides where the car is centered in a curb spot and where its
    front lands when projected onto the driving lane.
    """
    car_id: int
    length: float
    owner: Optional[int] = None
    vehicle_type: VehicleType = VehicleType.CAR

    def to_dict(self) -> dict:
        return {
            "car_id": self.car_id,
            "length": self.length,
            "owner": self.owner,
            "vehicle_type": self.vehicle_type.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Vehicle":
        owner = data.get("owner")
        return cls(
            car_id=int(data["car_id"]),
            length=float(data["length"]),
            owner=int(owner) if owner is not None else None,
            vehicle_type=VehicleType.from_string(data.get("vehicle_type", "car")),
        )


@dataclass(frozen=True)
class ParkedCar:
    """A vehicle sitting in a spot."""
    vehicle: Vehicle
    spot: ParkingSpot

    @property
    def car_id(self) -> int:
        return self.vehicle.car_id

    def to_dict(self) -> dict:
        return {"vehicle": self.vehicle.to_dict(), "spot": self.spot.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> "ParkedCar":
        return cls(
            vehicle=Vehicle.from_dict(data["vehicle"]),
            spot=spot_from_dict(data["spot"]),
        )
