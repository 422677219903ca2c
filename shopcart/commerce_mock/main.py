# shopcart/commerce_mock/main.py
from datetime import datetime, timedelta, timezone
from typing import Dict

import uvicorn
from fastapi import APIRouter, Body, Depends, FastAPI, Header, HTTPException

from shopcart.domain.schemas import CouponCodeIn, ProductIdIn, QuantityIn

app = FastAPI(title="Commerce Service (dev mock)")
router = APIRouter(prefix="/api")

PRODUCTS = {
    "p-keyboard": {"_id": "p-keyboard", "name": "Keyboard", "price": 199.99, "image": "/img/keyboard.png"},
    "p-mouse": {"_id": "p-mouse", "name": "Mouse", "price": 49.50, "image": "/img/mouse.png"},
    "p-monitor": {"_id": "p-monitor", "name": "Monitor", "price": 899.00, "image": "/img/monitor.png"},
}

# None = no auth required
API_TOKEN: str | None = None

CART: Dict[str, int] = {}
COUPONS: Dict[str, dict] = {}


def _iso(delta: timedelta) -> str:
    return (datetime.now(timezone.utc) + delta).isoformat()


def reset() -> None:
    CART.clear()
    COUPONS.clear()
    COUPONS.update(
        {
            "SAVE20": {"code": "SAVE20", "discountPercentage": 20, "expirationDate": _iso(timedelta(days=30))},
            "WELCOME10": {"code": "WELCOME10", "discountPercentage": 10, "expirationDate": _iso(timedelta(days=7))},
            "OLD50": {"code": "OLD50", "discountPercentage": 50, "expirationDate": _iso(timedelta(days=-1))},
        }
    )


reset()


def require_auth(authorization: str | None = Header(default=None)):
    if API_TOKEN and authorization != f"Bearer {API_TOKEN}":
        raise HTTPException(status_code=401, detail="Unauthorized - No access token provided")


def _cart_rows() -> list:
    return [{**PRODUCTS[pid], "quantity": qty} for pid, qty in CART.items()]


@router.get("/cart", dependencies=[Depends(require_auth)])
def get_cart():
    return _cart_rows()


@router.post("/cart", dependencies=[Depends(require_auth)])
def add_to_cart(payload: ProductIdIn):
    if payload.productId not in PRODUCTS:
        raise HTTPException(status_code=404, detail="Product not found")
    CART[payload.productId] = CART.get(payload.productId, 0) + 1
    return _cart_rows()


@router.delete("/cart", dependencies=[Depends(require_auth)])
def remove_from_cart(payload: ProductIdIn = Body(...)):
    CART.pop(payload.productId, None)
    return _cart_rows()


@router.put("/cart/{product_id}", dependencies=[Depends(require_auth)])
def update_quantity(product_id: str, payload: QuantityIn):
    if product_id not in CART:
        raise HTTPException(status_code=404, detail="Product not found")
    if payload.quantity == 0:
        CART.pop(product_id)
    else:
        CART[product_id] = payload.quantity
    return _cart_rows()


@router.get("/coupons", dependencies=[Depends(require_auth)])
def get_coupon():
    now = datetime.now(timezone.utc)
    active = [
        c for c in COUPONS.values()
        if datetime.fromisoformat(c["expirationDate"]) > now
    ]
    if not active:
        return None
    return max(active, key=lambda c: c["discountPercentage"])


@router.post("/coupons/validate", dependencies=[Depends(require_auth)])
def validate_coupon(payload: CouponCodeIn):
    # expiry is left to the client
    return COUPONS.get(payload.code.strip().upper())


app.include_router(router)

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=5000)
