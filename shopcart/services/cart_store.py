# shopcart/services/cart_store.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping

from pydantic import BaseModel, TypeAdapter, ValidationError

from shopcart.data.state import CartState
from shopcart.domain.schemas import CartItem, CartSnapshot, Coupon, CouponState, Totals
from shopcart.services.commerce_client import CommerceApiError, CommerceClient
from shopcart.services.notification_service import NotificationService
from shopcart.services.totals import calculate_totals
from shopcart.utils.logging import get_logger
from shopcart.utils.settings import RECHECK_COUPON_EXPIRY

logger = get_logger(__name__)

Observer = Callable[[CartSnapshot], None]

_CART_ROWS = TypeAdapter(List[Dict[str, Any]])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _error_text(error: Exception, fallback: str) -> str:
    if isinstance(error, CommerceApiError) and error.message:
        return error.message
    return fallback


def _format_percent(value: Decimal) -> str:
    # 20, 12.5 - bez zer na koncu
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


class CartStore:
    """
    Client-side cart and coupon store.

    - state container: cart, coupon, coupon flag, totals, loading
    - cart sync: remote call first, local reconciliation only on success
    - coupon lifecycle: NO_COUPON -> VALIDATING -> COUPON_APPLIED / NO_COUPON
    - totals recomputed synchronously after every cart or coupon change

    Operations never raise; failures end up in the notification service.
    """

    def __init__(
        self,
        client: CommerceClient,
        notifications: NotificationService,
        clock: Callable[[], datetime] | None = None,
        recheck_coupon_expiry: bool = RECHECK_COUPON_EXPIRY,
    ):
        self.client = client
        self.notifications = notifications
        self.clock = clock or _utcnow
        self.recheck_coupon_expiry = recheck_coupon_expiry
        self._state = CartState()
        self._observers: List[Observer] = []

    # query - odczyt

    @property
    def cart(self) -> tuple:
        return tuple(self._state.cart)

    @property
    def coupon(self) -> Coupon | None:
        return self._state.coupon

    @property
    def coupon_applied(self) -> bool:
        return self._state.coupon_applied

    @property
    def subtotal(self) -> Decimal:
        return self._state.totals.subtotal

    @property
    def discount(self) -> Decimal:
        return self._state.totals.discount

    @property
    def total(self) -> Decimal:
        return self._state.totals.total

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def version(self) -> int:
        return self._state.version

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._state.cart)

    @property
    def coupon_state(self) -> CouponState:
        if self._state.loading:
            return CouponState.VALIDATING
        if self._state.coupon is not None and self._state.coupon_applied:
            return CouponState.COUPON_APPLIED
        return CouponState.NO_COUPON

    def snapshot(self) -> CartSnapshot:
        totals = self._state.totals
        return CartSnapshot(
            items=tuple(self._state.cart),
            coupon=self._state.coupon,
            coupon_applied=self._state.coupon_applied,
            subtotal=totals.subtotal,
            discount=totals.discount,
            total=totals.total,
            loading=self._state.loading,
            coupon_state=self.coupon_state,
            version=self._state.version,
        )

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register `observer` for snapshots after each change; returns the unsubscribe function."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def calculate_totals(self) -> Totals:
        now = self.clock() if self.recheck_coupon_expiry else None
        totals = calculate_totals(
            self._state.cart,
            self._state.coupon,
            self._state.coupon_applied,
            now=now,
        )
        self._state.totals = totals
        return totals

    # commands - cart

    def load_cart(self) -> CartSnapshot:
        try:
            rows = self.client.get_cart()
            items = self._normalize_cart(rows)
        except (CommerceApiError, ValidationError) as e:
            logger.error(f"Blad pobierania koszyka: {e}")
            self._commit(cart=[])
            self.notifications.error(_error_text(e, "Failed to fetch cart items"))
            return self.snapshot()

        logger.info(f"Loaded cart with {len(items)} items")
        self._commit(cart=items)
        return self.snapshot()

    def add_item(self, product: Mapping[str, Any] | BaseModel) -> CartSnapshot:
        candidate = self._new_item(product)
        if candidate is None:
            self.notifications.error("Invalid product")
            return self.snapshot()

        try:
            self.client.add_to_cart(candidate.id)
        except CommerceApiError as e:
            self.notifications.error(_error_text(e, "Failed to add to cart"))
            return self.snapshot()

        existing = self._state.find_item(candidate.id)
        if existing:
            logger.info(
                f"Produkt {candidate.id} juz jest w koszyku, zwiekszam ilosc "
                f"z {existing.quantity} do {existing.quantity + 1}"
            )
            cart = self._replace_quantity(candidate.id, existing.quantity + 1)
        else:
            logger.info(f"Dodaje nowy produkt {candidate.id} do koszyka")
            cart = self._state.cart + [candidate]

        self._commit(cart=cart)
        self.notifications.success("Product added to cart")
        return self.snapshot()

    def remove_item(self, item_id: str) -> CartSnapshot:
        if not item_id:
            self.notifications.error("Invalid product")
            return self.snapshot()

        try:
            self.client.remove_from_cart(item_id)
        except CommerceApiError as e:
            self.notifications.error(_error_text(e, "Failed to remove item from cart"))
            return self.snapshot()

        logger.info(f"Usuwanie produktu {item_id} z koszyka")
        self._commit(cart=[item for item in self._state.cart if item.id != item_id])
        self.notifications.success("Item removed from cart")
        return self.snapshot()

    def set_quantity(self, item_id: str, quantity: int) -> CartSnapshot:
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            logger.warning(f"Ignoring non-integer quantity {quantity!r} for {item_id}")
            return self.snapshot()
        # transient UI values, no error
        if quantity < 0:
            return self.snapshot()
        if quantity == 0:
            return self.remove_item(item_id)
        if not item_id:
            self.notifications.error("Invalid product")
            return self.snapshot()

        try:
            self.client.update_quantity(item_id, quantity)
        except CommerceApiError as e:
            self.notifications.error(_error_text(e, "Failed to update quantity"))
            return self.snapshot()

        self._commit(cart=self._replace_quantity(item_id, quantity))
        return self.snapshot()

    def clear(self) -> CartSnapshot:
        """Local reset, e.g. on logout. No remote call."""
        self._commit(cart=[], coupon=None, coupon_applied=False)
        return self.snapshot()

    # commands - coupons

    def fetch_best_coupon(self) -> CartSnapshot:
        try:
            payload = self.client.get_coupon()
            coupon = Coupon.model_validate(payload) if payload else None
        except (CommerceApiError, ValidationError) as e:
            logger.warning(f"Error fetching coupon: {e}")
            self._commit(coupon=None, coupon_applied=False)
            return self.snapshot()

        if coupon is None or not coupon.is_active(self.clock()):
            self._commit(coupon=None, coupon_applied=False)
        else:
            logger.info(f"Applying best available coupon {coupon.code}")
            self._commit(coupon=coupon, coupon_applied=True)
        return self.snapshot()

    def apply_coupon(self, code: str | None) -> CartSnapshot:
        code = (code or "").strip()
        if not code:
            self.notifications.error("Please enter a coupon code")
            return self.snapshot()

        self._set_loading(True)
        try:
            self._validate_and_apply(code)
        finally:
            self._set_loading(False)
        return self.snapshot()

    def remove_coupon(self) -> CartSnapshot:
        self._commit(coupon=None, coupon_applied=False)
        self.notifications.success("Coupon removed")
        return self.snapshot()

    # internals

    def _validate_and_apply(self, code: str) -> None:
        logger.info(f"Applying coupon {code}")
        try:
            payload = self.client.validate_coupon(code)
        except CommerceApiError as e:
            logger.warning(f"Coupon {code} failed: {e}")
            self._commit(coupon=None, coupon_applied=False)
            if e.is_unauthenticated:
                self.notifications.error("Please log in to apply a coupon")
            else:
                self.notifications.error(_error_text(e, "Failed to apply coupon"))
            return

        try:
            coupon = Coupon.model_validate(payload) if payload else None
        except ValidationError as e:
            logger.warning(f"Malformed coupon payload for {code}: {e}")
            coupon = None

        if coupon is None:
            self._commit(coupon=None, coupon_applied=False)
            self.notifications.error("Invalid coupon code")
            return

        if not coupon.is_active(self.clock()):
            self._commit(coupon=None, coupon_applied=False)
            self.notifications.error("This coupon has expired")
            return

        self._commit(coupon=coupon, coupon_applied=True)
        self.notifications.success(
            f"Coupon applied! {_format_percent(coupon.discount_percentage)}% off"
        )

    def _new_item(self, product: Mapping[str, Any] | BaseModel) -> CartItem | None:
        if isinstance(product, BaseModel):
            fields = product.model_dump()
        elif isinstance(product, Mapping):
            fields = dict(product)
        else:
            logger.warning(f"Rejected product of type {type(product).__name__}")
            return None

        product_id = fields.pop("_id", None) or fields.get("id")
        if product_id is None or str(product_id).strip() == "":
            logger.warning("Rejected product without id")
            return None

        fields["id"] = product_id
        fields["quantity"] = 1
        try:
            return CartItem.model_validate(fields)
        except ValidationError as e:
            logger.warning(f"Rejected product {product_id}: {e}")
            return None

    def _normalize_cart(self, rows: Iterable[Any]) -> List[CartItem]:
        merged: Dict[str, CartItem] = {}
        for row in _CART_ROWS.validate_python(rows or []):
            try:
                item = CartItem.model_validate(row)
            except ValidationError as e:
                logger.warning(f"Skipping invalid cart row {row!r}: {e}")
                continue

            if item.id in merged:
                logger.warning(f"Duplicate cart row for {item.id}, merging quantities")
                previous = merged[item.id]
                item = previous.model_copy(update={"quantity": previous.quantity + item.quantity})
            merged[item.id] = item
        return list(merged.values())

    def _replace_quantity(self, item_id: str, quantity: int) -> List[CartItem]:
        return [
            item.model_copy(update={"quantity": quantity}) if item.id == item_id else item
            for item in self._state.cart
        ]

    def _commit(self, **changes: Any) -> None:
        for name, value in changes.items():
            setattr(self._state, name, value)
        self.calculate_totals()
        self._state.version += 1
        self._publish()

    def _set_loading(self, loading: bool) -> None:
        self._state.loading = loading
        self._state.version += 1
        self._publish()

    def _publish(self) -> None:
        if not self._observers:
            return
        snapshot = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception(f"Cart observer {observer!r} failed")
