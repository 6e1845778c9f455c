"""
Occupancy & Reservation Ledger Tests

The reserve -> park -> leave protocol and its failure modes.
"""

import logging

import pytest

from parksim.errors import ParkingInvariantError
from parksim.logging_utils import LogLevel
from parksim.parking import (
    LotSpot,
    OffstreetSpot,
    OnstreetSpot,
    OccupancyLedger,
    ParkedCar,
    ParkingEventType,
    ParkingSimState,
    Vehicle,
    VehicleType,
)
from parksim.roadmap import RoadMap

from conftest import find_lane

logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
logger = logging.getLogger(__name__)


def test_three_spot_lane(ring_manifest, quiet_config) -> None:
    """
    Validates:
        - A 40 m parking lane offers exactly three spots
        - Reserving the middle spot leaves only the outer two free
    """
    find_lane(ring_manifest, 1)["center"] = [[5, -2.5], [45, -2.5]]
    state = ParkingSimState(RoadMap.from_dict(ring_manifest), config=quiet_config)

    assert state.get_free_onstreet_spots(1) == [
        OnstreetSpot(1, 0), OnstreetSpot(1, 1), OnstreetSpot(1, 2)
    ]

    state.reserve_spot(OnstreetSpot(1, 1))
    assert state.get_free_onstreet_spots(1) == [OnstreetSpot(1, 0), OnstreetSpot(1, 2)]
    logger.info("  PASS: reservation hides the spot")


def test_reserve_park_leave_cycle(state) -> None:
    spot = OnstreetSpot(4, 2)
    car = Vehicle(car_id=7, length=4.5, owner=70)

    assert state.is_free(spot)
    state.reserve_spot(spot)
    assert not state.is_free(spot), "Reserved spot is not free"

    state.add_parked_car(ParkedCar(car, spot))
    assert not state.is_free(spot), "Occupied spot is not free"
    assert state.get_car_at_spot(spot).car_id == 7
    assert state.lookup_parked_car(7).spot == spot
    assert state.get_owner_of_car(7) == 70
    assert state.ledger.reserved_spots() == []

    left = state.remove_parked_car(7)
    assert left.spot == spot
    assert state.is_free(spot)
    assert state.lookup_parked_car(7) is None
    assert state.get_owner_of_car(7) is None

    events = state.collect_events()
    assert [e.event_type for e in events] == [
        ParkingEventType.CAR_REACHED_PARKING_SPOT,
        ParkingEventType.CAR_LEFT_PARKING_SPOT,
    ]
    assert all(e.car_id == 7 and e.spot == spot for e in events)
    assert state.collect_events() == [], "collect_events drains the queue"
    logger.info("  PASS: full parking cycle with events")


def test_cancel_reservation(state) -> None:
    spot = LotSpot(0, 3)
    state.reserve_spot(spot)
    state.cancel_reservation(spot)

    assert state.is_free(spot)
    with pytest.raises(ParkingInvariantError):
        state.cancel_reservation(spot)
    logger.info("  PASS: cancel frees the spot once")


def test_double_reserve_faults_and_logs(state) -> None:
    spot = OffstreetSpot(0, 0)
    state.reserve_spot(spot)

    with pytest.raises(ParkingInvariantError):
        state.reserve_spot(spot)

    errors = state.ledger.logger.get_entries(LogLevel.ERROR)
    assert errors and "suggested_fix" in errors[-1], "Faults carry a suggested fix"
    logger.info("  PASS: double reservation rejected")


def test_reserve_stale_spot(state) -> None:
    with pytest.raises(ParkingInvariantError):
        state.reserve_spot(OnstreetSpot(1, 9))
    with pytest.raises(ParkingInvariantError):
        state.reserve_spot(OnstreetSpot(13, 0))
    with pytest.raises(ParkingInvariantError):
        state.reserve_spot(OffstreetSpot(2, 0))


def test_park_without_reservation(state) -> None:
    with pytest.raises(ParkingInvariantError):
        state.add_parked_car(ParkedCar(Vehicle(1, 4.5), OnstreetSpot(1, 0)))
    assert state.is_free(OnstreetSpot(1, 0)), "Failed park leaves no trace"


def test_no_double_parking(state) -> None:
    spot = OnstreetSpot(1, 0)
    state.reserve_spot(spot)
    state.add_parked_car(ParkedCar(Vehicle(1, 4.5), spot))

    with pytest.raises(ParkingInvariantError):
        state.add_parked_car(ParkedCar(Vehicle(2, 4.5), spot))

    other = OnstreetSpot(1, 1)
    state.reserve_spot(other)
    with pytest.raises(ParkingInvariantError):
        state.add_parked_car(ParkedCar(Vehicle(1, 4.5), other))
    assert state.lookup_parked_car(1).spot == spot, "Car stays where it parked"
    logger.info("  PASS: spot and car can each be parked once")


def test_only_cars_take_spots(state) -> None:
    spot = OnstreetSpot(1, 0)
    state.reserve_spot(spot)

    with pytest.raises(ParkingInvariantError):
        state.add_parked_car(ParkedCar(Vehicle(1, 2.0, vehicle_type=VehicleType.BIKE), spot))

    assert state.lookup_parked_car(1) is None
    assert spot in state.ledger.reserved_spots(), "Reservation survives the rejected park"
    errors = state.ledger.logger.get_entries(LogLevel.ERROR)
    assert errors[-1]["suggested_fix"] == "Only park vehicles of type car"


def test_remove_unknown_car(state) -> None:
    with pytest.raises(ParkingInvariantError):
        state.remove_parked_car(404)


def test_partition_and_views() -> None:
    ledger = OccupancyLedger()
    all_spots = [OnstreetSpot(1, i) for i in range(4)]
    ledger._reserved.add(all_spots[1])

    filled, available = ledger.partition(all_spots)
    assert filled == [all_spots[1]]
    assert available == [all_spots[0], all_spots[2], all_spots[3]]


def test_reconcile_after_edit() -> None:
    """
    Validates:
        - Evicted = occupied before minus available after
        - Reserved after = reserved before intersected with available after
        - Evictions emit no events
    """
    ledger = OccupancyLedger()
    kept, gone, gone_reserved, kept_reserved = (
        OnstreetSpot(1, 0), OnstreetSpot(4, 0), OnstreetSpot(4, 1), LotSpot(0, 0)
    )
    for spot in (kept, gone, gone_reserved, kept_reserved):
        ledger._reserved.add(spot)
    ledger.add_parked(ParkedCar(Vehicle(1, 4.5), kept))
    ledger.add_parked(ParkedCar(Vehicle(2, 4.5), gone))
    ledger.collect_events()

    filled, _ = ledger.partition([kept, gone, gone_reserved, kept_reserved])
    evicted = ledger.reconcile_after_edit(filled, {kept, kept_reserved})

    assert [p.car_id for p in evicted] == [2]
    assert ledger.lookup_parked_car(2) is None
    assert ledger.lookup_parked_car(1).spot == kept
    assert ledger.reserved_spots() == [kept_reserved]
    assert ledger.collect_events() == []
    logger.info("  PASS: reconciliation evicts and trims reservations")


def test_ledger_round_trip() -> None:
    ledger = OccupancyLedger()
    ledger._reserved.update({OnstreetSpot(1, 0), OffstreetSpot(0, 1)})
    ledger.add_parked(ParkedCar(Vehicle(3, 4.0, owner=9), OnstreetSpot(1, 0)))

    restored = OccupancyLedger.from_dict(ledger.to_dict())
    assert restored.parked_cars() == ledger.parked_cars()
    assert restored.reserved_spots() == [OffstreetSpot(0, 1)]


def test_ledger_from_dict_rejects_overlap() -> None:
    data = {
        "parked_cars": [ParkedCar(Vehicle(1, 4.5), OnstreetSpot(1, 0)).to_dict()],
        "reserved": [OnstreetSpot(1, 0).to_dict()],
    }
    with pytest.raises(ParkingInvariantError):
        OccupancyLedger.from_dict(data)
