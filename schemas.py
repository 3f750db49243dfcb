"""
Database Schemas for plantNet

Each Pydantic model validates a request body before it reaches MongoDB.
Collections:
- users
- plants
- orders

Extra fields sent by the client are kept and stored as submitted.
"""

from enum import Enum
from typing import Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class Role(str, Enum):
    CUSTOMER = "customer"
    SELLER = "seller"
    ADMIN = "admin"


class UserStatus(str, Enum):
    REQUESTED = "requested"
    VERIFIED = "Verified"


# Users
class UserIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = Field(None, description="Display name")
    email: Optional[EmailStr] = Field(None, description="Email address, defaults to the path email")
    image: Optional[str] = Field(None, description="Avatar URL")


class RoleUpdate(BaseModel):
    role: Role


# Plants
class SellerInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: EmailStr
    name: Optional[str] = None
    image: Optional[str] = None


class PlantIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    description: Optional[str] = None
    image: Optional[str] = Field(None, description="Image URL")
    price: float = Field(0, ge=0)
    quantity: int = Field(0, ge=0, description="Units in stock")
    seller: SellerInfo


class QuantityUpdate(BaseModel):
    quantityToUpdate: int = Field(..., ge=0)
    status: str = Field("decrease", description="increase | decrease")


# Orders
class CustomerInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: EmailStr
    name: Optional[str] = None
    image: Optional[str] = None


class OrderIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    customer: CustomerInfo
    plantId: str = Field(..., description="Plant _id as a hex string")
    seller: EmailStr
    quantity: int = Field(1, ge=1)
    price: float = Field(0, ge=0)
    address: Optional[str] = None
    status: str = Field("Pending", description="Pending | ... | Delivered")

    @field_validator("plantId")
    @classmethod
    def plant_id_is_object_id(cls, v: str) -> str:
        if not ObjectId.is_valid(v):
            raise ValueError("plantId must be a 24 character hex string")
        return v


# Auth
class TokenRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: EmailStr
