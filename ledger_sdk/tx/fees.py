"""
ledger_sdk.tx.fees
==================

Fee-credit arithmetic: conversion between a partition's native execution
currency (e.g. wei on the EVM partition) and the ledger's canonical fee
units, plus the sufficiency check that gates submission.

Rules
-----
- Conversion is integer floor division by the scaling factor (10**10 by
  default, i.e. 1 canonical unit = 10**10 wei). Never rounded: the node
  compares fees with integer (in)equality, so the client must truncate the
  same way.
- Products are computed on Python's arbitrary-precision ints; a result that
  does not fit the node's unsigned 64-bit amounts raises `FeeOverflowError`
  instead of wrapping.
- A missing fee credit bill is a zero balance.

Examples
--------
    from ledger_sdk.tx.fees import estimate_required_fee, check_sufficiency

    fee = estimate_required_fee(quantity=21_000, unit_price="100000000000")
    check_sufficiency(available=bill.value, required=fee)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..errors import FeeOverflowError, InsufficientFundsError
from ..types.core import MAX_UINT64, FeeCreditBill

DEFAULT_SCALING_FACTOR = 10**10

Amount = Union[int, str]


def parse_amount(value: Amount, *, name: str = "amount") -> int:
    """
    Accept an int or a base-10 string (the node returns big numbers as
    strings) and return a non-negative int.
    """
    if isinstance(value, bool):
        raise TypeError(f"{name} must be an integer, got bool")
    if isinstance(value, int):
        n = value
    elif isinstance(value, str):
        s = value.strip()
        if not s or not s.isdigit():
            raise ValueError(f"{name} is not a non-negative base-10 integer: {value!r}")
        n = int(s, 10)
    else:
        raise TypeError(f"{name} must be int or str, got {type(value).__name__}")
    if n < 0:
        raise ValueError(f"{name} must be non-negative")
    return n


def _check_scaling(scaling_factor: int) -> int:
    if isinstance(scaling_factor, bool) or not isinstance(scaling_factor, int) or scaling_factor <= 0:
        raise ValueError("scaling_factor must be a positive integer")
    return scaling_factor


def convert_native_to_canonical(native_amount: Amount, scaling_factor: int = DEFAULT_SCALING_FACTOR) -> int:
    """
    Convert a native amount into canonical fee units, truncating toward zero.

        convert(9_999_999_999) == 0
        convert(10_000_000_000) == 1
        convert(19_999_999_999) == 1
    """
    native = parse_amount(native_amount, name="native_amount")
    canonical = native // _check_scaling(scaling_factor)
    if canonical > MAX_UINT64:
        raise FeeOverflowError("canonical amount does not fit in 64 bits", value=canonical)
    return canonical


def estimate_required_fee(
    quantity: Amount,
    unit_price: Amount,
    scaling_factor: int = DEFAULT_SCALING_FACTOR,
    *,
    max_native: Optional[int] = None,
) -> int:
    """
    Canonical fee for `quantity` units (e.g. gas) at `unit_price` native
    currency per unit: ``convert(quantity * unit_price)``.

    A zero price is valid and yields a zero fee. `max_native` optionally caps
    the native product (e.g. the 256-bit EVM word size); exceeding it raises
    `FeeOverflowError`.
    """
    q = parse_amount(quantity, name="quantity")
    p = parse_amount(unit_price, name="unit_price")
    product = q * p
    if max_native is not None and product > max_native:
        raise FeeOverflowError("native fee exceeds the representable maximum", value=product)
    return convert_native_to_canonical(product, scaling_factor)


def available_balance(bill: Optional[FeeCreditBill]) -> int:
    """Balance of a fee credit bill; no bill means zero."""
    if bill is None:
        return 0
    return int(bill.value)


def check_sufficiency(available: int, required: int) -> None:
    """
    Raise `InsufficientFundsError` when `required` exceeds `available`.
    Both amounts are canonical units.
    """
    if int(required) > int(available):
        raise InsufficientFundsError(required=int(required), available=int(available))


@dataclass(frozen=True)
class FeeCreditCalculator:
    """Binds a scaling factor to the module-level helpers."""

    scaling_factor: int = DEFAULT_SCALING_FACTOR

    def __post_init__(self) -> None:
        _check_scaling(self.scaling_factor)

    def to_canonical(self, native_amount: Amount) -> int:
        return convert_native_to_canonical(native_amount, self.scaling_factor)

    def required_fee(self, quantity: Amount, unit_price: Amount) -> int:
        return estimate_required_fee(quantity, unit_price, self.scaling_factor)

    def check(self, bill: Optional[FeeCreditBill], required: int) -> int:
        """Check a bill (or its absence) against `required`; returns the available balance."""
        available = available_balance(bill)
        check_sufficiency(available, required)
        return available


__all__ = [
    "DEFAULT_SCALING_FACTOR",
    "parse_amount",
    "convert_native_to_canonical",
    "estimate_required_fee",
    "available_balance",
    "check_sufficiency",
    "FeeCreditCalculator",
]
