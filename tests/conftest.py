from unittest.mock import MagicMock

import pytest

from shopcart.services.cart_store import CartStore
from shopcart.services.commerce_client import CommerceClient
from shopcart.services.notification_service import CollectingNotificationService
from tests.helpers import CART_ROWS, NOW


@pytest.fixture
def client():
    """CommerceClient double; every call succeeds with an empty acknowledgement."""
    mock_client = MagicMock(spec=CommerceClient)
    mock_client.get_cart.return_value = []
    mock_client.add_to_cart.return_value = None
    mock_client.remove_from_cart.return_value = None
    mock_client.update_quantity.return_value = None
    mock_client.get_coupon.return_value = None
    mock_client.validate_coupon.return_value = None
    return mock_client


@pytest.fixture
def notifications():
    return CollectingNotificationService()


@pytest.fixture
def store(client, notifications):
    return CartStore(client=client, notifications=notifications, clock=lambda: NOW)


@pytest.fixture
def loaded_store(store, client, notifications):
    """Store holding the a/b example cart, notifications drained."""
    client.get_cart.return_value = [dict(row) for row in CART_ROWS]
    store.load_cart()
    notifications.drain()
    client.reset_mock()
    return store
