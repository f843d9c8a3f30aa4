"""Tests for deterministic polynomial encodings."""

import json
import struct

import pytest

from constraint_poly.field import BN254_PRIME, FF, GOLDILOCKS_PRIME, bn254_field, prime_field
from constraint_poly.polynomial import Poly, from_mapping, from_terms, negate
from constraint_poly.serialization import (
    HEADER_SIZE,
    from_bytes,
    from_dict,
    from_json,
    to_bytes,
    to_dict,
    to_json,
)

F7 = prime_field(7)


class TestBinary:
    """Test the binary encoding."""

    def test_layout_mod_7(self) -> None:
        """3 + 3x0 + 5x1 over GF(7): 1-byte elements after a 3 x u64 header."""
        p = from_terms(3, [(0, 2), (1, -2), (0, 1)], F7)
        data = to_bytes(p)
        assert data[:HEADER_SIZE] == struct.pack('<3Q', 1, 2, 8)
        assert data[HEADER_SIZE:] == bytes([7, 3]) + struct.pack('<Q', 0) + bytes([3]) + struct.pack('<Q', 1) + bytes([5])

    def test_equal_structures_encode_identically(self) -> None:
        """Insertion order does not leak into the encoding."""
        p = from_terms(1, [(5, 2), (1, 3), (9, 4)], FF)
        q = from_mapping(1, {9: 4, 5: 2, 1: 3}, FF)
        assert to_bytes(p) == to_bytes(q)

    def test_negation_encodes_differently(self) -> None:
        """p and -p compare equal but encode differently."""
        p = from_terms(1, [(0, 2)], F7)
        assert to_bytes(p) != to_bytes(negate(p))

    def test_decode_goldilocks(self) -> None:
        """Goldilocks polynomials decode into FF."""
        p = from_terms(GOLDILOCKS_PRIME - 1, [(3, 1), (70000, GOLDILOCKS_PRIME - 5)], FF)
        q = from_bytes(to_bytes(p))
        assert q.field is FF
        assert to_bytes(q) == to_bytes(p)
        assert list(q.coeffs) == [3, 70000]

    def test_decode_rebuilds_small_field(self) -> None:
        """The field is rebuilt from the encoded modulus."""
        p = from_terms(3, [(0, 1)], F7)
        q = from_bytes(to_bytes(p))
        assert q.field is F7
        assert q == p

    def test_decode_bn254_without_field(self) -> None:
        """A BN254 polynomial decodes into the bn254_field() class without a field argument."""
        F = bn254_field()
        p = from_terms(3, [(0, 1), (1, -2)], F)
        data = to_bytes(p)
        assert data[:HEADER_SIZE] == struct.pack('<3Q', 32, 2, 8)
        q = from_bytes(data)
        assert q.field is F
        assert to_bytes(q) == data
        assert int(q.coeffs[1]) == BN254_PRIME - 2

    def test_dict_bn254_without_field(self) -> None:
        """from_dict and from_json reuse the BN254 field class."""
        p = from_terms(BN254_PRIME - 1, [(4, 9)], bn254_field())
        assert from_dict(to_dict(p)).field is bn254_field()
        assert from_json(to_json(p)) == p

    def test_decode_with_matching_field(self) -> None:
        """An explicit matching field is accepted."""
        p = from_terms(3, [(0, 1)], F7)
        assert from_bytes(to_bytes(p), F7) == p

    def test_decode_with_wrong_field(self) -> None:
        """An explicit field with another modulus is rejected."""
        p = from_terms(3, [(0, 1)], F7)
        with pytest.raises(ValueError, match="does not match"):
            from_bytes(to_bytes(p), prime_field(11))

    def test_truncated(self) -> None:
        """Truncated data is rejected."""
        data = to_bytes(from_terms(3, [(0, 1), (1, 1)], F7))
        with pytest.raises(ValueError):
            from_bytes(data[:-1])
        with pytest.raises(ValueError, match="too short"):
            from_bytes(data[:10])

    def test_zero_coefficient_rejected(self) -> None:
        """A zero coefficient breaks the Poly invariant."""
        data = struct.pack('<3Q', 1, 1, 8) + bytes([7, 3]) + struct.pack('<Q', 0) + bytes([0])
        with pytest.raises(ValueError, match="non-zero"):
            from_bytes(data)

    def test_no_terms_rejected(self) -> None:
        """An encoding with no terms is rejected."""
        data = struct.pack('<3Q', 1, 0, 8) + bytes([7, 3])
        with pytest.raises(ValueError, match="no variable terms"):
            from_bytes(data)

    def test_unsorted_vars_rejected(self) -> None:
        """Variables must be strictly ascending."""
        data = (
            struct.pack('<3Q', 1, 2, 8) + bytes([7, 3])
            + struct.pack('<Q', 4) + bytes([1])
            + struct.pack('<Q', 2) + bytes([1])
        )
        with pytest.raises(ValueError, match="ascending"):
            from_bytes(data)

    def test_composite_modulus_rejected(self) -> None:
        """A non-prime modulus is rejected."""
        data = struct.pack('<3Q', 1, 1, 8) + bytes([8, 3]) + struct.pack('<Q', 0) + bytes([1])
        with pytest.raises(ValueError, match="not prime"):
            from_bytes(data)

    def test_out_of_range_constant_rejected(self) -> None:
        """A constant not below the modulus is rejected."""
        data = struct.pack('<3Q', 1, 1, 8) + bytes([7, 9]) + struct.pack('<Q', 0) + bytes([1])
        with pytest.raises(ValueError, match="out of range"):
            from_bytes(data)


class TestDict:
    """Test the dict and JSON encodings."""

    def test_to_dict(self) -> None:
        """to_dict lists coefficients ascending by variable."""
        p = from_terms(3, [(1, -2), (0, 3)], F7)
        assert to_dict(p) == {"prime": 7, "constant": 3, "coeffs": [[0, 3], [1, 5]]}

    def test_dict_roundtrip(self) -> None:
        """from_dict(to_dict(p)) reproduces p."""
        p = from_terms(12, [(2, 1), (8, 40)], FF)
        q = from_dict(to_dict(p))
        assert isinstance(q, Poly)
        assert to_dict(q) == to_dict(p)

    def test_json_is_canonical(self) -> None:
        """to_json uses sorted keys and compact separators."""
        p = from_terms(3, [(1, -2), (0, 3)], F7)
        assert to_json(p) == '{"coeffs":[[0,3],[1,5]],"constant":3,"prime":7}'
        assert json.loads(to_json(p)) == to_dict(p)

    def test_from_json(self) -> None:
        """from_json parses the dict form."""
        q = from_json('{"prime": 7, "constant": 1, "coeffs": [[4, 6]]}')
        assert int(q.constant) == 1
        assert {var: int(c) for var, c in q.coeffs.items()} == {4: 6}

    @pytest.mark.parametrize("text", [
        'not json',
        '[1, 2]',
        '{"prime": 7, "constant": 1}',
        '{"prime": 7, "constant": 1, "coeffs": [[0]]}',
        '{"prime": 7, "constant": 1, "coeffs": []}',
        '{"prime": 7, "constant": 3.7, "coeffs": [[0, 1]]}',
        '{"prime": 7, "constant": 1, "coeffs": [[0, 1.5]]}',
        '{"prime": 7, "constant": 1, "coeffs": [[true, 1]]}',
        '{"prime": "7", "constant": 1, "coeffs": [[0, 1]]}',
    ])
    def test_malformed_json(self, text: str) -> None:
        """Malformed JSON raises ValueError."""
        with pytest.raises(ValueError):
            from_json(text)

    def test_float_constant_not_truncated(self) -> None:
        """A fractional constant is rejected instead of truncated."""
        with pytest.raises(ValueError, match="constant must be an integer"):
            from_dict({"prime": 7, "constant": 3.7, "coeffs": [[0, 1]]})
