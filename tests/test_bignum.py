# tests/test_bignum.py
"""
Digit-level arithmetic: carries, borrows, trimming, capacity, contracts.

Run: pytest -v
"""

from __future__ import annotations

import pytest

from fibengine.bignum import (
    BigNumber,
    BigNumberContractError,
    CapacityExceededError,
    add,
    compare,
    init,
    mul,
    sub,
)

# ---------- helpers -----------------------------------------------------------


def bn(v: int, cap: int | None = None) -> BigNumber:
    return init(v, cap)


SAMPLES = [0, 1, 7, 9, 10, 99, 100, 101, 999, 1000, 4096, 65535, 999_999_999, 10**18, 12345678901234567890]


# ---------- init --------------------------------------------------------------


@pytest.mark.parametrize("value,digits", [
    (0, (0,)),
    (1, (1,)),
    (10, (0, 1)),
    (907, (7, 0, 9)),
])
def test_init_is_little_endian(value, digits):
    assert bn(value).digits == digits


def test_init_rejects_negative_and_non_int():
    with pytest.raises(ValueError):
        init(-1)
    with pytest.raises(TypeError):
        init(1.5)
    with pytest.raises(TypeError):
        init(True)


@pytest.mark.parametrize("digits", [
    (),          # no digits at all
    (12,),       # cell out of range
    (-1,),
    (3, 10),
    (True,),
    (1, 0),      # most-significant zero
    (0, 0),
])
def test_constructor_rejects_non_canonical_digits(digits):
    with pytest.raises(ValueError):
        BigNumber(digits)


def test_constructor_accepts_canonical_digits():
    assert int(BigNumber((0,))) == 0
    assert int(BigNumber((0, 1))) == 10
    assert compare(BigNumber((2,)), init(10)) == -1


def test_constructor_enforces_capacity():
    with pytest.raises(CapacityExceededError):
        BigNumber((0, 0, 1), capacity=2)
    assert BigNumber((0, 1), capacity=2).capacity == 2


def test_zero_is_single_digit():
    z = bn(0)
    assert z.digits == (0,)
    assert len(z) == 1
    assert z.is_zero()


@pytest.mark.parametrize("v", SAMPLES)
def test_int_and_str_match_python(v):
    b = bn(v)
    assert int(b) == v
    assert str(b) == str(v)


def test_capacity_not_part_of_equality():
    assert bn(42, 2) == bn(42, None)
    assert hash(bn(42, 2)) == hash(bn(42, 5))


# ---------- add / sub / mul ---------------------------------------------------


@pytest.mark.parametrize("a", SAMPLES)
@pytest.mark.parametrize("b", [0, 1, 9, 99, 1001, 10**18 - 1])
def test_add_matches_python(a, b):
    assert int(add(bn(a), bn(b))) == a + b


def test_add_final_carry_extends_length():
    r = add(bn(999), bn(1))
    assert r.digits == (0, 0, 0, 1)


@pytest.mark.parametrize("a,b", [(10, 1), (1000, 1), (100, 100), (12345, 6789), (10**20, 10**20 - 1)])
def test_sub_borrows_and_trims(a, b):
    r = sub(bn(a), bn(b))
    assert int(r) == a - b
    assert r.digits[-1] != 0 or r.digits == (0,)


def test_sub_underflow_is_contract_violation():
    with pytest.raises(BigNumberContractError):
        sub(bn(5), bn(6))
    with pytest.raises(AssertionError):
        sub(bn(99), bn(100))


@pytest.mark.parametrize("a", SAMPLES)
@pytest.mark.parametrize("b", [0, 1, 9, 11, 12345, 10**9 + 7])
def test_mul_matches_python(a, b):
    r = mul(bn(a), bn(b))
    assert int(r) == a * b
    assert len(r) <= len(bn(a)) + len(bn(b))


def test_mul_by_zero_is_canonical_zero():
    assert mul(bn(0), bn(123456)).digits == (0,)
    assert mul(bn(987), bn(0)).digits == (0,)


def test_operators_delegate():
    assert bn(7) + bn(8) == bn(15)
    assert bn(15) - bn(8) == bn(7)
    assert bn(12) * bn(12) == bn(144)
    assert bn(3) < bn(10) <= bn(10) < bn(11)


@pytest.mark.parametrize("a,b,expected", [(0, 0, 0), (1, 2, -1), (10, 9, 1), (123, 124, -1), (500, 500, 0)])
def test_compare(a, b, expected):
    assert compare(bn(a), bn(b)) == expected


def test_operands_are_not_mutated():
    a, b = bn(999), bn(1)
    before = (a.digits, b.digits)
    add(a, b)
    mul(a, b)
    sub(a, b)
    assert (a.digits, b.digits) == before


# ---------- arithmetic laws -----------------------------------------------------


@pytest.mark.parametrize("a,b", [(0, 0), (10, 3), (1000, 999), (10**15, 1), (987654321, 123456789)])
def test_add_undoes_sub(a, b):
    x, y = bn(a), bn(b)
    assert add(sub(x, y), y) == x


@pytest.mark.parametrize("a,b,c", [(0, 5, 7), (12, 34, 56), (999, 1, 99999), (10**12 + 3, 77, 10**6)])
def test_mul_distributes_over_add(a, b, c):
    x, y, z = bn(a), bn(b), bn(c)
    assert mul(x, add(y, z)) == add(mul(x, y), mul(x, z))


# ---------- capacity -----------------------------------------------------------


def test_init_over_capacity_raises():
    with pytest.raises(CapacityExceededError) as ei:
        init(12345, 4)
    assert ei.value.required == 5
    assert ei.value.capacity == 4


def test_add_carry_over_capacity_raises():
    with pytest.raises(CapacityExceededError):
        add(bn(9, 1), bn(1, 1))


def test_mul_over_capacity_raises_but_fits_exactly():
    assert int(mul(bn(99, 4), bn(99, 4))) == 9801
    with pytest.raises(CapacityExceededError):
        mul(bn(99, 3), bn(99, 3))


def test_result_takes_tighter_capacity():
    assert add(bn(1, 3), bn(1)).capacity == 3
    assert add(bn(1, 3), bn(1, 5)).capacity == 3
    assert add(bn(1), bn(1)).capacity is None


def test_growable_has_no_bound():
    big = bn(10**200)
    assert len(mul(big, big)) == 401
