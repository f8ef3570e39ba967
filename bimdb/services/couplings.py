import logging

from sqlalchemy import delete, insert, select
from sqlalchemy.orm import Session

from ..exceptions import BadRequestError, EntityNotFoundError
from ..models import Coupling, CouplingVehicle, Vehicle
from ..multiset import split_lines
from ..schemas import CouplingMember, CouplingRead

logger = logging.getLogger(__name__)


def list_couplings(db: Session) -> list[CouplingRead]:
    rows = db.execute(
        select(
            Coupling.id,
            CouplingVehicle.position,
            Vehicle.id,
            Vehicle.company,
            Vehicle.vehicle_number,
        )
        .select_from(Coupling)
        .outerjoin(CouplingVehicle, CouplingVehicle.coupling_id == Coupling.id)
        .outerjoin(Vehicle, Vehicle.id == CouplingVehicle.vehicle_id)
        .order_by(Coupling.id, CouplingVehicle.position)
    ).all()

    couplings: dict[int, CouplingRead] = {}
    for coupling_id, position, vehicle_id, company, vehicle_number in rows:
        coupling = couplings.setdefault(coupling_id, CouplingRead(id=coupling_id))
        if vehicle_id is None:
            continue
        coupling.members.append(
            CouplingMember(
                id=vehicle_id,
                company=company,
                vehicle_number=vehicle_number,
                position=position,
            )
        )
    return list(couplings.values())


def get_coupling(db: Session, coupling_id: int) -> CouplingRead:
    if db.get(Coupling, coupling_id) is None:
        raise EntityNotFoundError("coupling")

    rows = db.execute(
        select(CouplingVehicle.position, Vehicle.id, Vehicle.company, Vehicle.vehicle_number)
        .select_from(CouplingVehicle)
        .join(Vehicle, Vehicle.id == CouplingVehicle.vehicle_id)
        .where(CouplingVehicle.coupling_id == coupling_id)
        .order_by(CouplingVehicle.position)
    ).all()
    return CouplingRead(
        id=coupling_id,
        members=[
            CouplingMember(
                id=vehicle_id,
                company=company,
                vehicle_number=vehicle_number,
                position=position,
            )
            for position, vehicle_id, company, vehicle_number in rows
        ],
    )


def company_vehicle_numbers(db: Session) -> dict[str, list[str]]:
    rows = db.execute(
        select(Vehicle.company, Vehicle.vehicle_number)
        .distinct()
        .order_by(Vehicle.company, Vehicle.vehicle_number)
    ).all()
    mapping: dict[str, list[str]] = {}
    for company, vehicle_number in rows:
        mapping.setdefault(company, []).append(vehicle_number)
    return mapping


def resolve_vehicle_ids(db: Session, company: str, vehicle_numbers: list[str]) -> list[int]:
    """Map each vehicle number of ``company`` to a vehicle id, keeping order.

    Raises ``BadRequestError`` naming every number that does not resolve.
    """
    rows = db.execute(
        select(Vehicle.vehicle_number, Vehicle.id)
        .where(
            Vehicle.company == company,
            Vehicle.vehicle_number.in_(vehicle_numbers),
        )
        .order_by(Vehicle.id.desc())
    ).all()
    # descending ids, so the lowest id wins for duplicated numbers
    number_to_id = {vehicle_number: vehicle_id for vehicle_number, vehicle_id in rows}

    unknown = [number for number in vehicle_numbers if number not in number_to_id]
    if unknown:
        raise BadRequestError(f"unknown vehicle numbers: {', '.join(unknown)}")
    return [number_to_id[number] for number in vehicle_numbers]


def replace_coupling(
    db: Session, coupling_id: int | None, company: str, vehicles_text: str
) -> int:
    """Create a coupling, or replace the members of an existing one.

    Every vehicle number is resolved before anything is written; the member
    rows are then rewritten in one transaction with positions ``1..N`` in the
    order the numbers were given.
    """
    vehicle_numbers = split_lines(vehicles_text)
    if not vehicle_numbers:
        raise BadRequestError("field 'vehicles' does not contain any vehicle numbers")

    if coupling_id is not None and db.get(Coupling, coupling_id) is None:
        raise EntityNotFoundError("coupling")
    vehicle_ids = resolve_vehicle_ids(db, company, vehicle_numbers)

    try:
        if coupling_id is not None:
            db.execute(
                delete(CouplingVehicle).where(CouplingVehicle.coupling_id == coupling_id)
            )
        else:
            coupling = Coupling()
            db.add(coupling)
            db.flush()
            coupling_id = coupling.id

        db.execute(
            insert(CouplingVehicle),
            [
                {"coupling_id": coupling_id, "vehicle_id": vehicle_id, "position": position}
                for position, vehicle_id in enumerate(vehicle_ids, start=1)
            ],
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("stored coupling %s with vehicles %s", coupling_id, vehicle_numbers)
    return coupling_id


def delete_coupling(db: Session, coupling_id: int) -> None:
    try:
        db.execute(
            delete(CouplingVehicle).where(CouplingVehicle.coupling_id == coupling_id)
        )
        result = db.execute(
            delete(Coupling).where(Coupling.id == coupling_id)
        )
        if result.rowcount == 0:
            raise EntityNotFoundError("coupling")
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("deleted coupling %s", coupling_id)
