"""Per-company export of vehicles as JSON or CBOR.

The vehicle rows, their coupling partners and their power sources come from
three flat queries and are merged by vehicle id into ``ExportRecord``s. Both
encodings serialize the same list of records.
"""

import enum
import json

import cbor2
from sqlalchemy import select
from sqlalchemy.orm import Session, aliased

from ..models import CouplingVehicle, Vehicle, VehiclePowerSource
from ..schemas import ExportRecord


class ExportFormat(str, enum.Enum):
    JSON = "json"
    CBOR = "cbor"

    @property
    def media_type(self) -> str:
        return {
            ExportFormat.JSON: "application/json",
            ExportFormat.CBOR: "application/cbor",
        }[self]


def fixed_coupling_map(db: Session, company: str) -> dict[int, list[str]]:
    own = aliased(CouplingVehicle)
    partner = aliased(CouplingVehicle)
    partner_vehicle = aliased(Vehicle)
    rows = db.execute(
        select(own.vehicle_id, partner_vehicle.vehicle_number)
        .select_from(own)
        .join(Vehicle, Vehicle.id == own.vehicle_id)
        .join(partner, partner.coupling_id == own.coupling_id)
        .join(partner_vehicle, partner_vehicle.id == partner.vehicle_id)
        .where(Vehicle.company == company)
        .order_by(own.vehicle_id, own.coupling_id, partner.position)
    ).all()

    partners: dict[int, list[str]] = {}
    for vehicle_id, vehicle_number in rows:
        partners.setdefault(vehicle_id, []).append(vehicle_number)
    return partners


def power_source_map(db: Session, company: str) -> dict[int, list[str]]:
    rows = db.execute(
        select(VehiclePowerSource.vehicle_id, VehiclePowerSource.power_source)
        .join(Vehicle, Vehicle.id == VehiclePowerSource.vehicle_id)
        .where(Vehicle.company == company)
        .order_by(VehiclePowerSource.vehicle_id, VehiclePowerSource.power_source)
    ).all()

    power_sources: dict[int, list[str]] = {}
    for vehicle_id, power_source in rows:
        power_sources.setdefault(vehicle_id, []).append(power_source)
    return power_sources


def export_records(db: Session, company: str) -> list[ExportRecord]:
    vehicles = db.execute(
        select(Vehicle)
        .where(Vehicle.company == company)
        .order_by(Vehicle.vehicle_number, Vehicle.id)
    ).scalars().all()
    partners = fixed_coupling_map(db, company)
    power_sources = power_source_map(db, company)

    return [
        ExportRecord(
            number=vehicle.vehicle_number,
            vehicle_class=vehicle.vehicle_class,
            type_code=vehicle.type_code,
            in_service_since=vehicle.in_service_since,
            out_of_service_since=vehicle.out_of_service_since,
            manufacturer=vehicle.manufacturer,
            depot=vehicle.depot,
            other_data=vehicle.other_data or {},
            fixed_coupling=partners.get(vehicle.id, []),
            power_sources=power_sources.get(vehicle.id, []),
        )
        for vehicle in vehicles
    ]


def encode_records(records: list[ExportRecord], export_format: ExportFormat) -> bytes:
    data = [record.model_dump() for record in records]
    if export_format is ExportFormat.CBOR:
        return cbor2.dumps(data)
    return json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")
