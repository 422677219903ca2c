# shopcart/main.py
from shopcart.services.cart_store import CartStore
from shopcart.services.commerce_client import CommerceClient
from shopcart.services.notification_service import NotificationService
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


def create_store(
    base_url: str | None = None,
    notifications: NotificationService | None = None,
    client: CommerceClient | None = None,
) -> CartStore:
    """Composition root: one store per shopper session."""
    return CartStore(
        client=client or CommerceClient(base_url=base_url),
        notifications=notifications or NotificationService(),
    )


if __name__ == "__main__":
    store = create_store()
    store.load_cart()
    snapshot = store.fetch_best_coupon()
    logger.info(
        f"Cart: {snapshot.item_count} items, subtotal {snapshot.subtotal}, "
        f"discount {snapshot.discount}, total {snapshot.total}"
    )
