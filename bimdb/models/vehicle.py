from typing import Any

from sqlalchemy import JSON, BigInteger, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntId = BigInteger().with_variant(Integer, "sqlite")


class Vehicle(Base):
    __tablename__ = "bims"
    __table_args__ = (
        Index("ix_bims_company_veh_number", "company", "veh_number"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    company: Mapped[str] = mapped_column(Text, nullable=False)
    vehicle_number: Mapped[str] = mapped_column("veh_number", Text, nullable=False)
    type_code: Mapped[str] = mapped_column(Text, nullable=False)
    vehicle_class: Mapped[str] = mapped_column("veh_class", String(255), nullable=False)
    in_service_since: Mapped[str | None] = mapped_column(Text)
    out_of_service_since: Mapped[str | None] = mapped_column(Text)
    manufacturer: Mapped[str | None] = mapped_column(Text)
    depot: Mapped[str | None] = mapped_column(Text)
    other_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    power_sources: Mapped[list["VehiclePowerSource"]] = relationship(
        back_populates="vehicle",
        order_by="VehiclePowerSource.power_source",
        passive_deletes=True,
    )
