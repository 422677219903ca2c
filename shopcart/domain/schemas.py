# shopcart/domain/schemas.py
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class CartItem(BaseModel):
    """Jedna pozycja koszyka; pola opisowe (name, image...) przechodza bez zmian."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str = Field(..., min_length=1, validation_alias=AliasChoices("_id", "id"))
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        # numeric ids from the service are kept as opaque strings
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class Coupon(BaseModel):
    """Percentage discount valid until `expiration_date`."""

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    code: str
    discount_percentage: Decimal = Field(..., ge=0, le=100, alias="discountPercentage")
    expiration_date: datetime = Field(..., alias="expirationDate")

    @field_validator("expiration_date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def is_active(self, now: datetime) -> bool:
        return self.expiration_date > now


class CouponState(str, Enum):
    NO_COUPON = "NO_COUPON"
    VALIDATING = "VALIDATING"
    COUPON_APPLIED = "COUPON_APPLIED"


class Totals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = Decimal("0.00")
    discount: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")


class CartSnapshot(BaseModel):
    """Spojny widok stanu koszyka po ostatniej zatwierdzonej zmianie."""

    model_config = ConfigDict(frozen=True)

    items: Tuple[CartItem, ...] = ()
    coupon: Coupon | None = None
    coupon_applied: bool = False
    subtotal: Decimal = Decimal("0.00")
    discount: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    loading: bool = False
    coupon_state: CouponState = CouponState.NO_COUPON
    version: int = 0

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


# request bodies of the commerce service


class ProductIdIn(BaseModel):
    productId: str = Field(..., min_length=1)


class QuantityIn(BaseModel):
    quantity: int = Field(..., ge=0)


class CouponCodeIn(BaseModel):
    code: str = Field(..., min_length=1)
