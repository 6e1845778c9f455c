#==============================================================================
# ParkSim - Parking Resource Allocation
#==============================================================================
# File: __init__.py
# Description: Parking inventory, reservation ledger and free-spot search
#              for a microscopic traffic simulation
# Author: Evan Petersen
# Date: October 2026
#==============================================================================

"""
ParkSim: Parking for Traffic Simulation

Tracks which cars occupy which curb, building and lot spots, holds spots
for drivers on their way, finds the nearest free spot over the road graph,
and keeps all of it consistent when the map is edited mid-simulation.
"""

__version__ = "0.1.0"
__author__ = "Evan Petersen"

from .config import Config
from .errors import MapConfigurationError, ParkingInvariantError
from .logging_utils import LogLevel, SimLogger, SessionLogger

__all__ = [
    "Config",
    "MapConfigurationError",
    "ParkingInvariantError",
    "LogLevel",
    "SimLogger",
    "SessionLogger",
]
