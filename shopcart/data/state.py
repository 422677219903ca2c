# shopcart/data/state.py
from dataclasses import dataclass, field
from typing import List

from shopcart.domain.schemas import CartItem, Coupon, Totals


@dataclass
class CartState:
    """
    Mutowalny stan store'a, zmieniany tylko przez CartStore:
    - cart: pozycje w kolejnosci dodania
    - coupon + coupon_applied
    - totals: zawsze przeliczane z cart/coupon
    - version: +1 przy kazdej zatwierdzonej zmianie
    """

    cart: List[CartItem] = field(default_factory=list)
    coupon: Coupon | None = None
    coupon_applied: bool = False
    totals: Totals = field(default_factory=Totals)
    loading: bool = False
    version: int = 0

    def find_item(self, item_id: str) -> CartItem | None:
        for item in self.cart:
            if item.id == item_id:
                return item
        return None
