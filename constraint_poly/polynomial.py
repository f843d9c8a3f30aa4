"""Affine-linear polynomials over a prime field, for use in constraint systems.

A Poly is ``c + a0*x0 + a1*x1 + ... + an*xn`` and stands for the constraint
``... = 0``.

Invariants:
    * no coefficient is zero
    * there is at least one variable term

Any operation that can cancel every term returns a ``Constant`` instead of a
Poly. The two outcomes are the only variants of ``PolyResult``:

    result = merge(p, q)
    if isinstance(result, Constant):
        # 0 = k: trivially satisfied for k == 0, unsatisfiable otherwise
        ...

Polys are immutable. Every operation returns a new value, so they can be
shared freely between threads.
"""

import functools
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

from constraint_poly.field import (
    FF,
    Element,
    FieldType,
    field_of,
    is_upper_half,
    is_zero,
    signed_int,
    to_field,
)

logger = logging.getLogger(__name__)

Var = int
Coeffs = Dict[Var, Element]


# --- Result Type ---

@dataclass(frozen=True, eq=False)
class Constant:
    """A polynomial whose variable terms all cancelled, leaving a bare field element."""
    value: Element

    def is_zero(self) -> bool:
        return is_zero(self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Constant):
            return NotImplemented
        return field_of(self.value).order == field_of(other.value).order and int(self.value) == int(other.value)

    def __hash__(self) -> int:
        return hash((field_of(self.value).order, int(self.value)))

    def __str__(self) -> str:
        return str(signed_int(self.value))

    def __repr__(self) -> str:
        return f"Constant({self})"


# --- Poly ---

@functools.total_ordering
class Poly:
    """Sparse affine-linear polynomial with non-zero coefficients.

    Build through from_terms(), from_mapping(), single() or bind(). The
    constructor trusts its input: `coeffs` must be non-empty, zero-free and in
    ascending key order.
    """

    __slots__ = ("_constant", "_coeffs", "_field", "_key")

    def __init__(self, constant: Element, coeffs: Coeffs, field: FieldType) -> None:
        assert coeffs, "Poly needs at least one variable term"
        self._constant = constant
        self._coeffs = coeffs
        self._field = field
        self._key = (int(constant), tuple((var, int(c)) for var, c in coeffs.items()))

    # Accessors

    @property
    def constant(self) -> Element:
        return self._constant

    @property
    def coeffs(self) -> Mapping[Var, Element]:
        """Read-only view of variable -> coefficient, ascending by variable."""
        return MappingProxyType(self._coeffs)

    @property
    def vars(self) -> frozenset:
        return frozenset(self._coeffs)

    @property
    def var_count(self) -> int:
        return len(self._coeffs)

    @property
    def field(self) -> FieldType:
        return self._field

    def view(self) -> Tuple[Element, Mapping[Var, Element]]:
        """Return (constant, coeffs)."""
        return self._constant, self.coeffs

    # Equality and ordering

    def _negated_key(self) -> tuple:
        p = self._field.order
        constant, items = self._key
        return (-constant % p, tuple((var, -c % p) for var, c in items))

    def __eq__(self, other: object) -> bool:
        # p = 0 and -p = 0 are the same constraint
        if not isinstance(other, Poly):
            return NotImplemented
        if self._field.order != other._field.order:
            return False
        return self._key == other._key or self._key == other._negated_key()

    def __hash__(self) -> int:
        return hash((self._field.order, min(self._key, self._negated_key())))

    def _sort_key(self) -> tuple:
        constant, items = self._key
        return (len(items), items, constant)

    def __lt__(self, other: "Poly") -> bool:
        if not isinstance(other, Poly):
            return NotImplemented
        if self == other:
            return False
        return self._sort_key() < other._sort_key()

    def __neg__(self) -> "Poly":
        return negate(self)

    # Display

    def __str__(self) -> str:
        terms = []
        for var, c in self._coeffs.items():
            if int(c) == 1:
                terms.append((" + ", f"${var}"))
            elif int(-c) == 1:
                terms.append((" - ", f"${var}"))
            elif is_upper_half(c):
                terms.append((" - ", f"{int(-c)}${var}"))
            else:
                terms.append((" + ", f"{int(c)}${var}"))

        if not is_zero(self._constant):
            return str(signed_int(self._constant)) + "".join(sign + term for sign, term in terms)

        first_sign, first_term = terms[0]
        rest = "".join(sign + term for sign, term in terms[1:])
        if first_sign == " + ":
            return first_term + rest
        return "- " + first_term + rest

    def __repr__(self) -> str:
        return f"Poly({self})"


PolyResult = Union[Poly, Constant]


def compare(p: Poly, q: Poly) -> int:
    """Three-way comparison: 0 when equal up to sign, else by (var count, coeffs, constant)."""
    if p == q:
        return 0
    return -1 if p._sort_key() < q._sort_key() else 1


# --- Construction ---

def _resolve_field(constant: Union[int, Element], field: Optional[FieldType]) -> FieldType:
    if field is not None:
        return field
    if isinstance(constant, Element):
        return field_of(constant)
    return FF


def from_terms(
    constant: Union[int, Element],
    terms: Iterable[Tuple[Var, Union[int, Element]]],
    field: Optional[FieldType] = None,
) -> PolyResult:
    """Create a polynomial from a constant and a list of (var, coeff) pairs.

    Coefficients of the same variable are added up; coefficients that end up
    0 are discarded. Returns a Constant if no term survives.

    Args:
        constant: Constant term (int or field element)
        terms: (variable, coefficient) pairs, duplicates allowed
        field: Field to build in (default: field of `constant`, else FF)
    """
    field = _resolve_field(constant, field)
    summed: Coeffs = {}
    for var, coeff in terms:
        coeff = to_field(field, coeff)
        summed[var] = summed[var] + coeff if var in summed else coeff
    return from_mapping(constant, summed, field)


def from_mapping(
    constant: Union[int, Element],
    coeffs: Mapping[Var, Union[int, Element]],
    field: Optional[FieldType] = None,
) -> PolyResult:
    """Create a polynomial from a constant and a var -> coeff mapping.

    Coefficients of 0 are discarded. Returns a Constant if no term survives.
    """
    field = _resolve_field(constant, field)
    constant = to_field(field, constant)
    normalized: Coeffs = {}
    for var in sorted(coeffs):
        assert var >= 0, f"Variable ids are non-negative, got {var}"
        c = to_field(field, coeffs[var])
        if not is_zero(c):
            normalized[var] = c
    if not normalized:
        return Constant(constant)
    return Poly(constant, normalized, field)


def single(var: Var, field: FieldType = FF) -> Poly:
    """The polynomial 0 + 1*var."""
    return Poly(field(0), {var: field(1)}, field)


def bind(var: Var, value: Union[int, Element], field: Optional[FieldType] = None) -> Poly:
    """Encode "var = value" as the polynomial value - var."""
    field = _resolve_field(value, field)
    return Poly(to_field(field, value), {var: -field(1)}, field)


# --- Algebra ---

def merge_coeffs(xs: Mapping[Var, Element], ys: Mapping[Var, Element]) -> Coeffs:
    """Merge coefficients of the same variable by adding them up, dropping zeros."""
    merged: Coeffs = dict(xs)
    for var, c in ys.items():
        merged[var] = merged[var] + c if var in merged else c
    return {var: merged[var] for var in sorted(merged) if not is_zero(merged[var])}


def _check_same_field(p: Poly, q: Poly) -> None:
    if p.field is not q.field:
        raise TypeError(f"Cannot combine polynomials over {p.field.name} and {q.field.name}")


def delete(var: Var, p: Poly) -> PolyResult:
    """Remove a variable's term from the polynomial."""
    if var not in p._coeffs:
        return p
    remaining = {v: c for v, c in p._coeffs.items() if v != var}
    if not remaining:
        return Constant(p.constant)
    return Poly(p.constant, remaining, p.field)


def merge(p: Poly, q: Poly) -> PolyResult:
    """Add two polynomials."""
    _check_same_field(p, q)
    coeffs = merge_coeffs(p._coeffs, q._coeffs)
    constant = p.constant + q.constant
    if not coeffs:
        return Constant(constant)
    return Poly(constant, coeffs, p.field)


def negate(p: Poly) -> Poly:
    """Negate the constant and every coefficient. Never collapses."""
    return Poly(-p.constant, {var: -c for var, c in p._coeffs.items()}, p.field)


def add_constant(p: Poly, delta: Union[int, Element]) -> Poly:
    return Poly(p.constant + to_field(p.field, delta), p._coeffs, p.field)


def scale(p: Poly, factor: Union[int, Element]) -> PolyResult:
    """Multiply the constant and every coefficient by `factor`.

    A zero factor collapses to Constant(0).
    """
    factor = to_field(p.field, factor)
    if is_zero(factor):
        return Constant(p.field(0))
    # Non-zero factor in a field keeps every coefficient non-zero
    return Poly(p.constant * factor, {var: c * factor for var, c in p._coeffs.items()}, p.field)


def renumber_vars(p: Poly, f: Callable[[Var], Var]) -> Poly:
    """Relabel every variable with `f`.

    `f` must not send two variables of `p` to the same id. Unrelated terms
    would otherwise be merged into one.
    """
    renamed = {f(var): c for var, c in p._coeffs.items()}
    assert len(renamed) == len(p._coeffs), "renumbering maps two variables to the same id"
    return Poly(p.constant, {var: renamed[var] for var in sorted(renamed)}, p.field)


def evaluate(p: Poly, assignment: Mapping[Var, Union[int, Element]]) -> Element:
    """Given an assignment of variables, return the value of the polynomial.

    Variables missing from the assignment count as 0.
    """
    total = p.constant
    for var, c in p._coeffs.items():
        if var in assignment:
            total = total + c * to_field(p.field, assignment[var])
    return total


# --- Substitution ---

def substitute_one(p: Poly, var: Var, replacement: Poly) -> PolyResult:
    """Substitute `var` in `p` with the polynomial `replacement`.

    Returns `p` unchanged if `var` does not occur in it. Otherwise the term
    a*var is replaced by a*replacement. `replacement` must not mention `var`.
    """
    coeff = p._coeffs.get(var)
    if coeff is None:
        return p
    _check_same_field(p, replacement)
    assert var not in replacement._coeffs, f"${var} cannot be substituted by a polynomial containing ${var}"

    rest = {v: c for v, c in p._coeffs.items() if v != var}
    scaled = {v: coeff * c for v, c in replacement._coeffs.items()}
    coeffs = merge_coeffs(rest, scaled)
    constant = p.constant + coeff * replacement.constant
    if not coeffs:
        logger.debug("Substituting $%d into %s collapsed to %d", var, p, int(constant))
        return Constant(constant)
    return Poly(constant, coeffs, p.field)


def substitute_many(
    p: Poly, bindings: Mapping[Var, Union[int, Element]]
) -> Tuple[PolyResult, bool]:
    """Substitute variables of `p` with values in one pass.

    Returns:
        (result, changed) where changed is True iff some variable of `p` was bound
    """
    constant = p.constant
    kept: Coeffs = {}
    changed = False
    for var, c in p._coeffs.items():
        if var in bindings:
            constant = constant + c * to_field(p.field, bindings[var])
            changed = True
        else:
            kept[var] = c

    if not changed:
        return p, False
    if not kept:
        logger.debug("Binding every variable of %s collapsed to %d", p, int(constant))
        return Constant(constant), True
    return Poly(constant, kept, p.field), True
