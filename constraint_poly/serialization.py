"""Deterministic encodings of Poly.

Binary layout (all little-endian):
    header   3 x u64   (element_width, n_terms, var_width)
    prime    element_width bytes
    constant element_width bytes
    terms    n_terms x (var: u64, coeff: element_width bytes), ascending by var

Two polynomials with the same structure always encode to the same bytes. Note
that p and -p compare equal but encode differently.

The dict form mirrors the binary one and is JSON-ready:
    {"prime": 7, "constant": 3, "coeffs": [[0, 3], [1, 5]]}
"""

import json
import logging
import struct
from typing import Any, Optional

import galois

from constraint_poly.field import FieldType, element_width, prime_field
from constraint_poly.polynomial import Poly

logger = logging.getLogger(__name__)

VAR_WIDTH = 8
HEADER_SIZE = 3 * 8


# --- Binary ---

def to_bytes(p: Poly) -> bytes:
    """Serialize a polynomial to its binary form."""
    width = element_width(p.field)
    parts = [
        struct.pack('<3Q', width, p.var_count, VAR_WIDTH),
        p.field.order.to_bytes(width, 'little'),
        int(p.constant).to_bytes(width, 'little'),
    ]
    for var, c in p.coeffs.items():
        parts.append(struct.pack('<Q', var))
        parts.append(int(c).to_bytes(width, 'little'))
    return b''.join(parts)


def from_bytes(data: bytes, field: Optional[FieldType] = None) -> Poly:
    """Deserialize a polynomial produced by to_bytes().

    Args:
        data: Encoded polynomial
        field: Expected field; if omitted, the field is rebuilt from the encoded modulus

    Raises:
        ValueError: If the data is truncated, inconsistent or breaks a Poly invariant
    """
    if len(data) < HEADER_SIZE:
        raise ValueError(f"Encoded polynomial too short: {len(data)} bytes")
    width, n_terms, var_width = struct.unpack('<3Q', data[:HEADER_SIZE])
    if var_width != VAR_WIDTH:
        raise ValueError(f"Unsupported variable width {var_width}")
    if width == 0:
        raise ValueError("Element width must be positive")

    expected = HEADER_SIZE + 2 * width + n_terms * (VAR_WIDTH + width)
    if len(data) != expected:
        raise ValueError(f"Expected {expected} bytes for {n_terms} terms, got {len(data)}")

    offset = HEADER_SIZE
    prime = int.from_bytes(data[offset:offset + width], 'little')
    offset += width
    constant = int.from_bytes(data[offset:offset + width], 'little')
    offset += width

    coeffs = []
    for _ in range(n_terms):
        (var,) = struct.unpack('<Q', data[offset:offset + VAR_WIDTH])
        offset += VAR_WIDTH
        coeffs.append((var, int.from_bytes(data[offset:offset + width], 'little')))
        offset += width

    return _build(prime, constant, coeffs, field)


# --- Dict / JSON ---

def to_dict(p: Poly) -> dict[str, Any]:
    """Convert a polynomial to a JSON-serializable dict."""
    return {
        "prime": p.field.order,
        "constant": int(p.constant),
        "coeffs": [[var, int(c)] for var, c in p.coeffs.items()],
    }


def from_dict(d: dict[str, Any], field: Optional[FieldType] = None) -> Poly:
    """Inverse of to_dict().

    Raises:
        ValueError: If a key is missing or the content breaks a Poly invariant
    """
    try:
        prime = _as_int(d["prime"], "prime")
        constant = _as_int(d["constant"], "constant")
        coeffs = [(_as_int(var, "variable"), _as_int(c, "coefficient")) for var, c in d["coeffs"]]
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Malformed polynomial dict: {e}") from e
    return _build(prime, constant, coeffs, field)


def _as_int(value: Any, what: str) -> int:
    # int() would truncate 3.7 to 3
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{what} must be an integer, got {value!r}")
    return value


def to_json(p: Poly) -> str:
    return json.dumps(to_dict(p), sort_keys=True, separators=(',', ':'))


def from_json(s: str, field: Optional[FieldType] = None) -> Poly:
    try:
        d = json.loads(s)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid polynomial JSON: {e}") from e
    if not isinstance(d, dict):
        raise ValueError("Polynomial JSON must be an object")
    return from_dict(d, field)


# --- Validation ---

def _build(prime: int, constant: int, coeffs: list[tuple[int, int]], field: Optional[FieldType]) -> Poly:
    """Check decoded values against the Poly invariants and build the Poly."""
    if field is None:
        if not galois.is_prime(prime):
            raise ValueError(f"Encoded modulus {prime} is not prime")
        field = prime_field(prime)
    elif field.order != prime:
        raise ValueError(f"Encoded modulus {prime} does not match {field.name}")

    if not coeffs:
        raise ValueError("Encoded polynomial has no variable terms")
    if not 0 <= constant < prime:
        raise ValueError(f"Constant {constant} out of range for modulus {prime}")

    prev = -1
    for var, c in coeffs:
        if var <= prev:
            logger.debug("Rejecting encoded polynomial: variable $%d after $%d", var, prev)
            raise ValueError("Encoded variables must be strictly ascending and non-negative")
        if not 0 < c < prime:
            raise ValueError(f"Coefficient {c} of ${var} out of range (must be non-zero)")
        prev = var

    return Poly(field(constant), {var: field(c) for var, c in coeffs}, field)
