"""Prime fields for constraint polynomials.

Uses galois library for all field arithmetic. A field is a ``galois.GF(p)``
class; its elements are 0-d FieldArrays, so ``+``, ``-``, ``*`` and unary ``-``
stay inside the field.

FF is the default field (Goldilocks). Other moduli go through prime_field(),
which caches the class so that one modulus always maps to one field type:
    >>> F7 = prime_field(7)
    >>> to_field(F7, -2)
    GF(5, order=7)
"""

import functools
from typing import Optional, Union

import galois
import numpy as np

# --- Field Construction ---

GOLDILOCKS_PRIME = 0xFFFFFFFF00000001

# BN254 scalar field, the usual field for Groth16 circuits
BN254_PRIME = 0x30644E72E131A029B85045B68181585D2833E84879B9709143E1F593F0000001
BN254_PRIMITIVE_ELEMENT = 5

FieldType = type  # a galois.GF(p) class
Element = galois.FieldArray


# Moduli whose primitive root search is too slow to run at construction
KNOWN_PRIMITIVE_ELEMENTS = {
    BN254_PRIME: BN254_PRIMITIVE_ELEMENT,
}


def prime_field(prime: int, primitive_element: Optional[int] = None) -> FieldType:
    """Return the prime field GF(prime), building it once per modulus.

    Passing a known primitive element skips galois's search for one, which is
    slow for 254-bit moduli. Moduli in KNOWN_PRIMITIVE_ELEMENTS get theirs
    filled in, so decoding a BN254 polynomial reuses the bn254_field() class.
    """
    if primitive_element is None:
        primitive_element = KNOWN_PRIMITIVE_ELEMENTS.get(prime)
    return _build_field(prime, primitive_element)


@functools.lru_cache(maxsize=None)
def _build_field(prime: int, primitive_element: Optional[int]) -> FieldType:
    if primitive_element is not None:
        return galois.GF(prime, primitive_element=primitive_element, verify=False)
    return galois.GF(prime)


def bn254_field() -> FieldType:
    """BN254 scalar field GF(r)."""
    return prime_field(BN254_PRIME)


FF = prime_field(GOLDILOCKS_PRIME)
"""Base field GF(p) - Goldilocks prime field."""


# --- Element Helpers ---

def field_of(x: Element) -> FieldType:
    """Return the field class an element belongs to."""
    return type(x)


def to_field(field: FieldType, value: Union[int, Element]) -> Element:
    """Coerce an int (any sign) or an element of `field` into `field`.

    Raises:
        TypeError: If value is an element of a different field, or not an integer
    """
    if isinstance(value, galois.FieldArray):
        if type(value) is not field:
            raise TypeError(
                f"Element of {type(value).name} cannot be used in {field.name}"
            )
        return value
    if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
        return field(int(value) % field.order)
    raise TypeError(f"Cannot convert {type(value).__name__} to a field element")


def is_zero(x: Element) -> bool:
    return int(x) == 0


def is_upper_half(x: Element) -> bool:
    """True if x is past the field midpoint, i.e. reads best as a negative residue."""
    return int(x) > type(x).order // 2


def signed_int(x: Element) -> int:
    """Signed representative of x in (-p/2, p/2]."""
    value = int(x)
    if is_upper_half(x):
        return value - type(x).order
    return value


def element_width(field: FieldType) -> int:
    """Bytes needed to store any element of `field` (and its modulus)."""
    return (field.order.bit_length() + 7) // 8
