import json
from datetime import datetime, timedelta, timezone

import requests

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)

CART_ROWS = [
    {"_id": "a", "name": "Keyboard", "price": 10.00, "quantity": 2},
    {"_id": "b", "name": "Mouse", "price": 5.50, "quantity": 1},
]


def coupon_payload(code="SAVE20", pct=20, expires_in=timedelta(days=1)):
    return {
        "code": code,
        "discountPercentage": pct,
        "expirationDate": (NOW + expires_in).isoformat(),
    }


def make_response(status=200, body=None, raw=None, url="http://commerce.test/api"):
    """Build a real requests.Response without touching the network."""
    resp = requests.Response()
    resp.status_code = status
    resp.url = url
    if raw is not None:
        resp._content = raw
    elif body is not None:
        resp._content = json.dumps(body).encode()
        resp.headers["Content-Type"] = "application/json"
    else:
        resp._content = b""
    return resp
