from typing import Any

from pydantic import BaseModel, Field


class ExportRecord(BaseModel):
    """One vehicle in the JSON/CBOR export; field order is the wire order."""

    number: str
    vehicle_class: str
    type_code: str
    in_service_since: str | None = None
    out_of_service_since: str | None = None
    manufacturer: str | None = None
    depot: str | None = None
    other_data: dict[str, Any] = Field(default_factory=dict)
    fixed_coupling: list[str] = Field(default_factory=list)
    power_sources: list[str] = Field(default_factory=list)
