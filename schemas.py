"""
Domain Schemas for Kisan Market

Each Pydantic model describes a record held in session state. The records
that survive a restart (user, inventory, orders) are stored as JSON under a
fixed key each, using the camelCase field names the mobile client expects.

Example: User.land_size is serialized as "landSize"
"""
from typing import Optional, List, Literal, Tuple
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Role = Literal["FARMER", "BUYER", "GUEST"]
Language = Literal["en", "hi", "pa"]


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Active session identity; replaced, never edited in place
class User(Record):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(..., description="Stable identity id")
    name: str = Field(..., description="Display name")
    role: Role = Field(..., description="User role")
    language: Language = Field("en", description="Language at login time")
    phone: Optional[str] = Field(None, description="Phone number with country code")
    location: Optional[str] = None
    land_size: Optional[str] = Field(None, description="Free-form land size, e.g. 5.2")
    primary_crops: Optional[Tuple[str, ...]] = None
    avatar: Optional[str] = None


# Partial profile edit; id and role cannot change
class UserUpdate(Record):
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    location: Optional[str] = None
    land_size: Optional[str] = None
    primary_crops: Optional[List[str]] = None
    language: Optional[Language] = None
    avatar: Optional[str] = None


# Marketplace catalog entry
class Product(Record):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str
    category: Literal["CROP", "INPUT"]
    price: float = Field(..., gt=0)
    unit: str = Field(..., description="Display unit, e.g. kg")
    quantity: float = Field(..., ge=0, description="Available stock")
    seller_id: str
    expiry_date: Optional[str] = None
    image: str = Field(..., description="Image URI")


class CartItem(Product):
    cart_quantity: int = Field(1, ge=1)


# Immutable checkout record
class Order(Record):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    date: str = Field(..., description="Display-formatted creation date")
    items: Tuple[CartItem, ...] = Field(..., min_length=1)
    total: float = Field(..., ge=0)
    status: Literal["PENDING", "SHIPPED", "COMPLETED"] = "PENDING"
    type: Literal["PURCHASE", "SALE"]


# Farmer stock ledger entry
class InventoryItem(Product):
    added_date: str
    loss_record: Optional[float] = Field(None, ge=0, description="Spoiled or lost quantity")


class WeatherInfo(Record):
    temp: float
    condition: str
    forecast: str


# AI advisor output
class Recommendation(Record):
    title: str
    description: str
    type: Literal["LOAN", "SCHEME", "LAW"]
    link: str


class VoiceCommandResult(Record):
    action: str = "UNKNOWN"
    feedback: str


# Outcome of the latest persistence attempt
class SaveResult(Record):
    persisted: bool = True
    detail: Optional[str] = None


# Everything the presentation layer renders from
class AppSnapshot(Record):
    user: Optional[User] = None
    language: Language = "en"
    cart: List[CartItem] = []
    cart_total: float = 0
    orders: List[Order] = []
    inventory: List[InventoryItem] = []
    is_online: bool = True
