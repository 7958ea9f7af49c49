"""Service catalog schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_required_text


class ServiceCreate(BaseModel):
    """Schema for adding a service to the catalog"""

    name: str
    description: Optional[str] = None
    duration_minutes: int
    price_range: Optional[str] = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return validate_required_text(v, "Service name", 100)

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v):
        if v <= 0:
            raise ValueError("Duration must be a positive number of minutes")
        return v


class ServiceUpdate(BaseModel):
    """Schema for editing a catalog service; omitted fields are left unchanged"""

    name: Optional[str] = None
    description: Optional[str] = None
    duration_minutes: Optional[int] = None
    price_range: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None:
            return validate_required_text(v, "Service name", 100)
        return v

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Duration must be a positive number of minutes")
        return v


class ServiceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price_range: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True
