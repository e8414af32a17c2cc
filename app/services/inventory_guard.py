# app/services/inventory_guard.py
"""
Read-only stock checks.

These work on anything exposing `stock_quantity` (a ProductVariant row or a
CartLine snapshot). They answer "is it available right now"; they do not
reserve anything. Reservation goes through the conditional UPDATEs in
ProductRepository.reserve_stock and CartRepository.increment_quantity, which
re-check stock inside the write.
"""
from typing import Protocol

DEFAULT_LOW_STOCK_THRESHOLD = 5


class Stocked(Protocol):
    stock_quantity: int


def available_quantity(variant: Stocked | None) -> int:
    if variant is None:
        return 0
    return max(0, variant.stock_quantity)


def in_stock(variant: Stocked | None) -> bool:
    return available_quantity(variant) > 0


def available(variant: Stocked | None, requested_quantity: int = 1) -> bool:
    if variant is None:
        return False
    return requested_quantity <= variant.stock_quantity


def low_stock(
    variant: Stocked | None,
    threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
) -> bool:
    return in_stock(variant) and variant.stock_quantity <= threshold
