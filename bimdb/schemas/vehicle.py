from typing import Any

from pydantic import BaseModel, Field


class VehicleFields(BaseModel):
    """Validated contents of the vehicle add/edit form."""

    company: str
    vehicle_number: str
    type_code: str
    vehicle_class: str
    in_service_since: str | None = None
    out_of_service_since: str | None = None
    manufacturer: str | None = None
    depot: str | None = None
    other_data: dict[str, Any] = Field(default_factory=dict)
    power_sources: list[str] = Field(default_factory=list)


class VehicleRead(VehicleFields):
    id: int

    model_config = {"from_attributes": True}


class VehicleSummary(BaseModel):
    id: int
    company: str
    vehicle_number: str
    type_code: str
    vehicle_class: str
    in_service_since: str | None = None
    out_of_service_since: str | None = None
    manufacturer: str | None = None
    depot: str | None = None

    model_config = {"from_attributes": True}


class VehiclePage(BaseModel):
    companies: list[str]
    vehicles: list[VehicleSummary]
    page: int
    per_page: int
    company: str | None = None

    @property
    def has_next(self) -> bool:
        return len(self.vehicles) >= self.per_page
