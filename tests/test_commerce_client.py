from unittest.mock import patch

import pytest
import requests

from shopcart.services.commerce_client import CommerceApiError, CommerceClient
from tests.helpers import make_response

BASE = "http://commerce.test/api"


class FakeSession:
    """Stands in for requests.Session; replays queued responses or exceptions."""

    def __init__(self, *results):
        self.headers = {}
        self.results = list(results)
        self.calls = []

    def request(self, method, url, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "timeout": timeout})
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture(autouse=True)
def _no_backoff():
    with patch("time.sleep"):
        yield


def _client(*results, **kwargs):
    session = FakeSession(*results)
    return CommerceClient(base_url=BASE + "/", timeout=2, token=kwargs.get("token"), session=session), session


def test_session_carries_json_headers_and_token():
    client, session = _client(token="abc")
    assert client.base_url == BASE
    assert session.headers["Content-Type"] == "application/json"
    assert session.headers["Accept"] == "application/json"
    assert session.headers["Authorization"] == "Bearer abc"


def test_get_cart():
    rows = [{"_id": "a", "price": 10, "quantity": 2}]
    client, session = _client(make_response(200, rows))

    assert client.get_cart() == rows
    assert session.calls == [{"method": "GET", "url": f"{BASE}/cart", "json": None, "timeout": 2}]


def test_get_cart_empty_body_is_empty_list():
    client, _ = _client(make_response(200))
    assert client.get_cart() == []


def test_cart_mutations_send_expected_requests():
    client, session = _client(make_response(200, {}), make_response(200, {}), make_response(204))

    client.add_to_cart("a")
    client.remove_from_cart("a")
    client.update_quantity("a/b", 3)

    assert [(c["method"], c["url"], c["json"]) for c in session.calls] == [
        ("POST", f"{BASE}/cart", {"productId": "a"}),
        ("DELETE", f"{BASE}/cart", {"productId": "a"}),
        ("PUT", f"{BASE}/cart/a%2Fb", {"quantity": 3}),
    ]


def test_coupon_endpoints():
    coupon = {"code": "SAVE20", "discountPercentage": 20, "expirationDate": "2099-01-01T00:00:00Z"}
    client, session = _client(make_response(200, coupon), make_response(200, raw=b"null"), make_response(200, {}))

    assert client.get_coupon() == coupon
    assert client.validate_coupon("NOPE") is None
    assert client.validate_coupon("NOPE") is None
    assert session.calls[1]["url"] == f"{BASE}/coupons/validate"
    assert session.calls[1]["json"] == {"code": "NOPE"}


def test_unauthorized_error():
    client, _ = _client(make_response(401, {"message": "Unauthorized - No access token provided"}))

    with pytest.raises(CommerceApiError) as exc:
        client.validate_coupon("SAVE20")

    assert exc.value.status == 401
    assert exc.value.is_unauthenticated
    assert exc.value.message == "Unauthorized - No access token provided"


def test_error_message_from_detail():
    client, _ = _client(make_response(404, {"detail": "Product not found"}))

    with pytest.raises(CommerceApiError) as exc:
        client.add_to_cart("zzz")

    assert exc.value.status == 404
    assert exc.value.message == "Product not found"
    assert not exc.value.is_unauthenticated


def test_error_without_json_body():
    client, session = _client(make_response(500, raw=b"<html>oops</html>"))

    with pytest.raises(CommerceApiError) as exc:
        client.get_cart()

    assert exc.value.status == 500
    assert exc.value.message is None
    # http errors are not retried
    assert len(session.calls) == 1


def test_idempotent_calls_retry_connection_errors():
    client, session = _client(
        requests.ConnectionError("reset"),
        requests.Timeout("slow"),
        make_response(200, []),
    )

    assert client.get_cart() == []
    assert len(session.calls) == 3


def test_retries_exhausted_become_api_error():
    client, session = _client(*[requests.ConnectionError("down")] * 3)

    with pytest.raises(CommerceApiError) as exc:
        client.remove_from_cart("a")

    assert exc.value.status is None
    assert exc.value.message is None
    assert len(session.calls) == 3


def test_post_is_not_retried():
    client, session = _client(requests.ConnectionError("reset"), make_response(200, {}))

    with pytest.raises(CommerceApiError):
        client.add_to_cart("a")

    assert len(session.calls) == 1


def test_invalid_json_on_success():
    client, _ = _client(make_response(200, raw=b"not json"))

    with pytest.raises(CommerceApiError) as exc:
        client.get_coupon()

    assert exc.value.message == "Unexpected response from commerce service"
