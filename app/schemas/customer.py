"""
Customer data schemas

Pydantic models for request validation and response serialization.
"""

from typing import Literal, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

# bcrypt only uses the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class CustomerSchema(BaseModel):
    """Customer as returned by the API"""
    id: int
    name: str
    phone: str
    active: bool
    created: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CustomerCreateSchema(BaseModel):
    """Schema for customer signup"""
    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=32)
    password: str = Field(..., min_length=1)

    @field_validator('name', 'phone')
    @classmethod
    def strip_whitespace(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('must not be blank')
        return v

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if len(v.encode('utf-8')) > MAX_PASSWORD_BYTES:
            raise ValueError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes')
        return v


class CustomerUpdateSchema(BaseModel):
    """Schema for updating customer contact information"""
    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=32)

    @field_validator('name', 'phone')
    @classmethod
    def strip_whitespace(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('must not be blank')
        return v


class TokenRequestSchema(BaseModel):
    """Customer login: phone as login plus password"""
    login: str
    password: str


class TokenSchema(BaseModel):
    token: str


class TokenValidationOkSchema(BaseModel):
    status: Literal["ok"] = "ok"
    customer_id: int = Field(..., serialization_alias="customerId")


class TokenValidationFailSchema(BaseModel):
    status: Literal["fail"] = "fail"
    reason: str
