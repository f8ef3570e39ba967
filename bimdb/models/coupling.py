from sqlalchemy import ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .vehicle import BigIntId


class Coupling(Base):
    __tablename__ = "couplings"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)


class CouplingVehicle(Base):
    """Membership of a vehicle in a coupling; ``position`` is 1-based."""

    __tablename__ = "coupling_bims"
    __table_args__ = (Index("ix_coupling_bims_bim_id", "bim_id"),)

    coupling_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("couplings.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    vehicle_id: Mapped[int] = mapped_column(
        "bim_id", BigIntId, ForeignKey("bims.id", ondelete="CASCADE"), nullable=False
    )
