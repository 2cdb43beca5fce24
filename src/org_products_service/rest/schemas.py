"""Pydantic request/response models for REST API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class MeResponse(BaseModel):
    user_id: str
    email: str


class RoleSchema(BaseModel):
    id: str
    name: str
    description: str | None = None


class RoleListResponse(BaseModel):
    organization_id: str
    roles: list[RoleSchema]


class ProductCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    price: Decimal = Field(ge=0)
    quantity: int = Field(default=0, ge=0)
    category: str | None = Field(default=None, max_length=64)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Product name must not be blank")
        return v.strip()


class ProductUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    quantity: int | None = Field(default=None, ge=0)
    category: str | None = Field(default=None, max_length=64)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Product name must not be blank")
        return v.strip()


class ProductSchema(BaseModel):
    id: str
    organization_id: str
    name: str
    description: str | None = None
    price: Decimal
    quantity: int
    category: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProductListResponse(BaseModel):
    products: list[ProductSchema]
    total: int
