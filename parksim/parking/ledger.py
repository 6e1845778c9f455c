"""
Occupancy & Reservation Ledger

Single source of truth for which spots are taken.

A spot moves through a two-phase protocol:
    free --reserve--> reserved --add_parked--> occupied --remove_parked--> free
A reservation can also be cancelled, and a map edit can evict a car whose
spot disappeared. Occupied and reserved spots never overlap.

All mutation goes through this class. Calls are synchronous and the caller
serializes them, so a reserve followed by add_parked cannot interleave with
another driver's reserve.
"""

from typing import Iterable, Optional

from ..errors import ParkingInvariantError
from ..logging_utils import SimLogger
from .events import ParkingEvent, ParkingEventType
from .inventory import SpotInventory
from .spots import ParkingSpot, spot_from_dict
from .vehicle import ParkedCar


class OccupancyLedger:
    """
    Tracks occupants, parked cars and reservations.

    Thread Safety: NOT thread-safe. The simulation step loop serializes calls.
    """

    MODULE_NAME = "Ledger"

    def __init__(self, logger: Optional[SimLogger] = None):
        self.logger = logger or SimLogger(self.MODULE_NAME, console_output=False)

        self._occupants: dict[ParkingSpot, int] = {}
        self._parked_cars: dict[int, ParkedCar] = {}
        self._reserved: set[ParkingSpot] = set()
        self._events: list[ParkingEvent] = []

    def _fault(self, message: str, suggested_fix: str, **context) -> ParkingInvariantError:
        """Log an invariant violation and build the exception to raise."""
        self.logger.error(message, suggested_fix=suggested_fix, **context)
        return ParkingInvariantError(message)

    # ========================================
    # RESERVE / COMMIT
    # ========================================

    def is_free(self, spot: ParkingSpot) -> bool:
        return spot not in self._occupants and spot not in self._reserved

    def reserve(self, spot: ParkingSpot, inventory: SpotInventory) -> None:
        """
        Hold a free spot for a car that is on its way.

        Raises:
            ParkingInvariantError: If the spot is stale, occupied or reserved
        """
        if not inventory.contains(spot):
            raise self._fault(
                f"Cannot reserve {spot}: it does not exist in the current map",
                suggested_fix="Search again; the spot handle predates a map edit",
                spot=spot,
            )
        if not self.is_free(spot):
            state = "occupied" if spot in self._occupants else "reserved"
            raise self._fault(
                f"Cannot reserve {spot}: already {state}",
                suggested_fix="Check is_free before reserving, or search for another spot",
                spot=spot,
            )
        self._reserved.add(spot)
        self.logger.debug("Spot reserved", spot=spot)

    def cancel_reservation(self, spot: ParkingSpot) -> None:
        """
        Release a reservation whose trip was aborted before arrival.

        Raises:
            ParkingInvariantError: If the spot is not reserved
        """
        if spot not in self._reserved:
            raise self._fault(
                f"Cannot cancel reservation of {spot}: it is not reserved",
                suggested_fix="Only cancel reservations returned by reserve",
                spot=spot,
            )
        self._reserved.discard(spot)
        self.logger.debug("Reservation cancelled", spot=spot)

    def add_parked(self, parked_car: ParkedCar) -> None:
        """
        Commit a reservation: the car is now in the spot.

        Raises:
            ParkingInvariantError: If the spot is occupied or was not
                reserved, the car is already parked somewhere, or the
                vehicle is not a car
        """
        spot = parked_car.spot
        car_id = parked_car.car_id
        vehicle_type = parked_car.vehicle.vehicle_type
        if not vehicle_type.uses_parking_spots:
            raise self._fault(
                f"Vehicle {car_id} is a {vehicle_type.value} and cannot take a parking spot",
                suggested_fix="Only park vehicles of type car",
                spot=spot,
                car_id=car_id,
            )
        if spot in self._occupants:
            raise self._fault(
                f"Car {car_id} cannot park at {spot}: occupied by car {self._occupants[spot]}",
                suggested_fix="Reserve the spot before driving to it",
                spot=spot,
                car_id=car_id,
            )
        if spot not in self._reserved:
            raise self._fault(
                f"Car {car_id} cannot park at {spot}: spot was not reserved",
                suggested_fix="Call reserve before add_parked",
                spot=spot,
                car_id=car_id,
            )
        if car_id in self._parked_cars:
            raise self._fault(
                f"Car {car_id} is already parked at {self._parked_cars[car_id].spot}",
                suggested_fix="Call remove_parked before parking the car again",
                spot=spot,
                car_id=car_id,
            )

        self._reserved.discard(spot)
        self._occupants[spot] = car_id
        self._parked_cars[car_id] = parked_car
        self._events.append(
            ParkingEvent(ParkingEventType.CAR_REACHED_PARKING_SPOT, car_id, spot)
        )
        self.logger.debug("Car parked", car_id=car_id, spot=spot)

    def remove_parked(self, car_id: int) -> ParkedCar:
        """
        The car leaves its spot.

        Raises:
            ParkingInvariantError: If the car is not parked
        """
        parked_car = self._parked_cars.get(car_id)
        if parked_car is None:
            raise self._fault(
                f"Car {car_id} is not parked",
                suggested_fix="Only remove cars returned by lookup_parked_car",
                car_id=car_id,
            )
        if self._occupants.get(parked_car.spot) != car_id:
            raise self._fault(
                f"Car {car_id} is parked at {parked_car.spot} but the spot does not list it",
                suggested_fix="Route every ledger mutation through reserve/add_parked/remove_parked",
                car_id=car_id,
                spot=parked_car.spot,
            )

        del self._parked_cars[car_id]
        del self._occupants[parked_car.spot]
        self._events.append(
            ParkingEvent(ParkingEventType.CAR_LEFT_PARKING_SPOT, car_id, parked_car.spot)
        )
        self.logger.debug("Car left spot", car_id=car_id, spot=parked_car.spot)
        return parked_car

    # ========================================
    # MAP EDITS
    # ========================================

    def reconcile_after_edit(
        self,
        old_filled_spots: Iterable[ParkingSpot],
        new_available_spots: set[ParkingSpot],
    ) -> list[ParkedCar]:
        """
        Evict cars whose spot no longer exists and drop dead reservations.

        Returns the evicted cars, ordered by spot. No events are emitted.
        """
        evicted = []
        for spot in sorted(set(old_filled_spots)):
            if spot in new_available_spots:
                continue
            car_id = self._occupants.pop(spot, None)
            if car_id is None:
                continue
            evicted.append(self._parked_cars.pop(car_id))

        dropped = sorted(s for s in self._reserved if s not in new_available_spots)
        self._reserved = {s for s in self._reserved if s in new_available_spots}

        if evicted:
            self.logger.warning(
                "Cars evicted by map edit",
                count=len(evicted),
                car_ids=[p.car_id for p in evicted],
            )
        if dropped:
            self.logger.debug(
                "Reservations dropped by map edit",
                spots=[s.to_dict() for s in dropped],
            )
        return evicted

    # ========================================
    # EVENTS
    # ========================================

    def collect_events(self) -> list[ParkingEvent]:
        """Drain and return every event since the last call."""
        events, self._events = self._events, []
        return events

    # ========================================
    # QUERIES
    # ========================================

    def get_car_at_spot(self, spot: ParkingSpot) -> Optional[ParkedCar]:
        car_id = self._occupants.get(spot)
        return self._parked_cars[car_id] if car_id is not None else None

    def lookup_parked_car(self, car_id: int) -> Optional[ParkedCar]:
        return self._parked_cars.get(car_id)

    def get_owner_of_car(self, car_id: int) -> Optional[int]:
        parked_car = self._parked_cars.get(car_id)
        return parked_car.vehicle.owner if parked_car else None

    def parked_cars(self) -> list[ParkedCar]:
        return [self._parked_cars[c] for c in sorted(self._parked_cars)]

    def occupied_spots(self) -> list[ParkingSpot]:
        return sorted(self._occupants)

    def reserved_spots(self) -> list[ParkingSpot]:
        return sorted(self._reserved)

    def partition(
        self,
        all_spots: Iterable[ParkingSpot],
    ) -> tuple[list[ParkingSpot], list[ParkingSpot]]:
        """Split spots into (filled, available); reserved counts as filled."""
        filled, available = [], []
        for spot in all_spots:
            if self.is_free(spot):
                available.append(spot)
            else:
                filled.append(spot)
        return filled, available

    def __len__(self) -> int:
        """Number of parked cars."""
        return len(self._parked_cars)

    # ========================================
    # SERIALIZATION
    # ========================================

    def to_dict(self) -> dict:
        return {
            "parked_cars": [p.to_dict() for p in self.parked_cars()],
            "reserved": [s.to_dict() for s in self.reserved_spots()],
        }

    @classmethod
    def from_dict(cls, data: dict, logger: Optional[SimLogger] = None) -> "OccupancyLedger":
        """
        Raises:
            ParkingInvariantError: If the data double-books a spot or car
        """
        ledger = cls(logger=logger)
        for entry in data.get("parked_cars", []):
            parked_car = ParkedCar.from_dict(entry)
            if parked_car.spot in ledger._occupants or parked_car.car_id in ledger._parked_cars:
                raise ledger._fault(
                    f"Snapshot parks car {parked_car.car_id} at {parked_car.spot} twice",
                    suggested_fix="Regenerate the snapshot from a live ledger",
                )
            ledger._occupants[parked_car.spot] = parked_car.car_id
            ledger._parked_cars[parked_car.car_id] = parked_car
        for entry in data.get("reserved", []):
            spot = spot_from_dict(entry)
            if spot in ledger._occupants:
                raise ledger._fault(
                    f"Snapshot reserves occupied spot {spot}",
                    suggested_fix="Regenerate the snapshot from a live ledger",
                )
            ledger._reserved.add(spot)
        return ledger
