from .coupling import CouplingMember, CouplingRead
from .export import ExportRecord
from .vehicle import VehicleFields, VehiclePage, VehicleRead, VehicleSummary

__all__ = [
    "CouplingMember",
    "CouplingRead",
    "ExportRecord",
    "VehicleFields",
    "VehiclePage",
    "VehicleRead",
    "VehicleSummary",
]
