from .base import Base
from .coupling import Coupling, CouplingVehicle
from .vehicle import Vehicle
from .vehicle_power_source import VehiclePowerSource

__all__ = [
    "Base",
    "Coupling",
    "CouplingVehicle",
    "Vehicle",
    "VehiclePowerSource",
]
