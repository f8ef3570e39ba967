import json
import logging

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from ..config import Settings
from ..exceptions import BadRequestError, EntityNotFoundError
from ..models import CouplingVehicle, Vehicle, VehiclePowerSource
from ..multiset import ValueMultiset, split_lines
from ..schemas import VehicleFields, VehiclePage, VehicleRead, VehicleSummary

logger = logging.getLogger(__name__)

MAX_OFFSET = 2**63 - 1

REQUIRED_FIELDS = (
    ("company", "company"),
    ("veh-number", "vehicle_number"),
    ("type-code", "type_code"),
    ("veh-class", "vehicle_class"),
)
OPTIONAL_FIELDS = (
    ("in-service-since", "in_service_since"),
    ("out-of-service-since", "out_of_service_since"),
    ("manufacturer", "manufacturer"),
    ("depot", "depot"),
)


def parse_vehicle_form(form: ValueMultiset, settings: Settings) -> VehicleFields:
    values: dict[str, object] = {}
    for key, attr in REQUIRED_FIELDS:
        values[attr] = _required(form, key)
    for key, attr in OPTIONAL_FIELDS:
        values[attr] = form.get_last(key) or None

    try:
        other_data = json.loads(_required(form, "other-data"))
    except json.JSONDecodeError as exc:
        raise BadRequestError("field 'other-data' is not valid JSON") from exc
    if not isinstance(other_data, dict):
        raise BadRequestError("field 'other-data' does not contain a JSON object")
    values["other_data"] = other_data

    power_sources: list[str] = []
    for entry in form.get_list_or_empty("power-source"):
        for power_source in split_lines(entry):
            if power_source not in power_sources:
                power_sources.append(power_source)
    values["power_sources"] = power_sources

    fields = VehicleFields(**values)
    _check_value_sets(fields, settings)
    return fields


def _required(form: ValueMultiset, key: str) -> str:
    value = form.get_last(key)
    if value is None:
        raise BadRequestError(f"field '{key}' is required")
    if not value:
        raise BadRequestError(f"field '{key}' must not be empty")
    return value


def _check_value_sets(fields: VehicleFields, settings: Settings) -> None:
    if settings.vehicle_classes and fields.vehicle_class not in settings.vehicle_classes:
        raise BadRequestError(f"vehicle class {fields.vehicle_class!r} is not allowed")
    if settings.power_sources:
        for power_source in fields.power_sources:
            if power_source not in settings.power_sources:
                raise BadRequestError(f"power source {power_source!r} is not allowed")


def list_vehicles(
    db: Session, page: int, per_page: int, company: str | None = None
) -> VehiclePage:
    if page < 0:
        raise BadRequestError("'page' must be >= 0")
    if page * per_page > MAX_OFFSET:
        raise BadRequestError("invalid 'page'")

    companies = db.execute(
        select(Vehicle.company).distinct().order_by(Vehicle.company)
    ).scalars().all()

    query = select(Vehicle).order_by(
        Vehicle.company, Vehicle.vehicle_number, Vehicle.id
    )
    if company:
        query = query.where(Vehicle.company == company)
    vehicles = db.execute(
        query.limit(per_page).offset(page * per_page)
    ).scalars().all()

    return VehiclePage(
        companies=list(companies),
        vehicles=[VehicleSummary.model_validate(vehicle) for vehicle in vehicles],
        page=page,
        per_page=per_page,
        company=company,
    )


def get_vehicle(db: Session, vehicle_id: int) -> VehicleRead:
    vehicle = db.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise EntityNotFoundError("vehicle")
    return VehicleRead(
        id=vehicle.id,
        company=vehicle.company,
        vehicle_number=vehicle.vehicle_number,
        type_code=vehicle.type_code,
        vehicle_class=vehicle.vehicle_class,
        in_service_since=vehicle.in_service_since,
        out_of_service_since=vehicle.out_of_service_since,
        manufacturer=vehicle.manufacturer,
        depot=vehicle.depot,
        other_data=vehicle.other_data or {},
        power_sources=[row.power_source for row in vehicle.power_sources],
    )


def create_vehicle(db: Session, fields: VehicleFields) -> int:
    try:
        vehicle = Vehicle(**fields.model_dump(exclude={"power_sources"}))
        db.add(vehicle)
        db.flush()
        vehicle_id = vehicle.id
        _insert_power_sources(db, vehicle_id, fields.power_sources)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("created vehicle %s (%s %s)", vehicle_id, fields.company, fields.vehicle_number)
    return vehicle_id


def update_vehicle(db: Session, vehicle_id: int, fields: VehicleFields) -> None:
    try:
        result = db.execute(
            update(Vehicle)
            .where(Vehicle.id == vehicle_id)
            .values(**fields.model_dump(exclude={"power_sources"}))
        )
        if result.rowcount == 0:
            raise EntityNotFoundError("vehicle")

        db.execute(
            delete(VehiclePowerSource).where(VehiclePowerSource.vehicle_id == vehicle_id)
        )
        _insert_power_sources(db, vehicle_id, fields.power_sources)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("updated vehicle %s", vehicle_id)


def delete_vehicle(db: Session, vehicle_id: int) -> None:
    try:
        coupling_ids = db.execute(
            select(CouplingVehicle.coupling_id).distinct().where(
                CouplingVehicle.vehicle_id == vehicle_id
            )
        ).scalars().all()

        db.execute(
            delete(VehiclePowerSource).where(VehiclePowerSource.vehicle_id == vehicle_id)
        )
        db.execute(
            delete(CouplingVehicle).where(CouplingVehicle.vehicle_id == vehicle_id)
        )
        result = db.execute(
            delete(Vehicle).where(Vehicle.id == vehicle_id)
        )
        if result.rowcount == 0:
            raise EntityNotFoundError("vehicle")

        for coupling_id in coupling_ids:
            _renumber_coupling(db, coupling_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("deleted vehicle %s", vehicle_id)


def _insert_power_sources(db: Session, vehicle_id: int, power_sources: list[str]) -> None:
    db.add_all(
        VehiclePowerSource(vehicle_id=vehicle_id, power_source=power_source)
        for power_source in power_sources
    )
    db.flush()


def _renumber_coupling(db: Session, coupling_id: int) -> None:
    positions = db.execute(
        select(CouplingVehicle.position)
        .where(CouplingVehicle.coupling_id == coupling_id)
        .order_by(CouplingVehicle.position)
    ).scalars().all()
    # ascending order keeps every target position free when it is assigned
    for new_position, old_position in enumerate(positions, start=1):
        if new_position == old_position:
            continue
        db.execute(
            update(CouplingVehicle)
            .where(
                CouplingVehicle.coupling_id == coupling_id,
                CouplingVehicle.position == old_position,
            )
            .values(position=new_position)
        )
