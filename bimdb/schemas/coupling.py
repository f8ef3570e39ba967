from pydantic import BaseModel, Field


class CouplingMember(BaseModel):
    id: int
    company: str
    vehicle_number: str
    position: int


class CouplingRead(BaseModel):
    id: int
    members: list[CouplingMember] = Field(default_factory=list)

    @property
    def company(self) -> str | None:
        # all members share a company when created through the form
        return self.members[-1].company if self.members else None

    @property
    def vehicle_numbers(self) -> list[str]:
        return [member.vehicle_number for member in self.members]
