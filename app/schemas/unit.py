from pydantic import BaseModel, ConfigDict, Field


class Unit(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    landlord_id: int
    code: str
    property_name: str
    address_line: str | None = None


class UnitCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    property_name: str = Field(..., min_length=1, max_length=255)
    address_line: str | None = Field(None, max_length=512)
