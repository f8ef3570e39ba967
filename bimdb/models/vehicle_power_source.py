from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .vehicle import BigIntId, Vehicle


class VehiclePowerSource(Base):
    __tablename__ = "bim_power_sources"

    vehicle_id: Mapped[int] = mapped_column(
        "bim_id",
        BigIntId,
        ForeignKey("bims.id", ondelete="CASCADE"),
        primary_key=True,
    )
    power_source: Mapped[str] = mapped_column(String(255), primary_key=True)

    vehicle: Mapped[Vehicle] = relationship(back_populates="power_sources")
