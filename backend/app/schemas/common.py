from datetime import datetime
from typing import Annotated, Any, Dict, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.types import to_naive_utc


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire (both accepted on input)"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Coordinates(CamelModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class Address(CamelModel):
    """Loose postal address, every part optional"""
    street: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)
    coordinates: Optional[Coordinates] = None


class FullAddress(Address):
    """Address where street, city, state and zip code are mandatory"""
    street: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)


def address_to_json(address: Optional[BaseModel]) -> Optional[Dict[str, Any]]:
    """Stored form of an address: camelCase keys, unset parts dropped"""
    if address is None:
        return None
    return address.model_dump(by_alias=True, exclude_none=True)


# Aware datetimes are converted to the naive UTC the database stores
UTCDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]


class PaginationMeta(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool


def dump(model: BaseModel) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def success_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Standard envelope: {success, message?, data?}"""
    body: Dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body
