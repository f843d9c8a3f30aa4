"""Linear constraint polynomials over prime fields."""

from constraint_poly.field import (
    BN254_PRIME,
    FF,
    GOLDILOCKS_PRIME,
    bn254_field,
    prime_field,
    to_field,
)
from constraint_poly.polynomial import (
    Constant,
    Poly,
    PolyResult,
    add_constant,
    bind,
    compare,
    delete,
    evaluate,
    from_mapping,
    from_terms,
    merge,
    merge_coeffs,
    negate,
    renumber_vars,
    scale,
    single,
    substitute_many,
    substitute_one,
)
from constraint_poly.serialization import (
    from_bytes,
    from_dict,
    from_json,
    to_bytes,
    to_dict,
    to_json,
)

__all__ = [
    # Field
    "FF",
    "GOLDILOCKS_PRIME",
    "BN254_PRIME",
    "bn254_field",
    "prime_field",
    "to_field",
    # Polynomial
    "Poly",
    "Constant",
    "PolyResult",
    "from_terms",
    "from_mapping",
    "single",
    "bind",
    "merge_coeffs",
    "delete",
    "merge",
    "negate",
    "add_constant",
    "scale",
    "renumber_vars",
    "evaluate",
    "compare",
    "substitute_one",
    "substitute_many",
    # Serialization
    "to_bytes",
    "from_bytes",
    "to_dict",
    "from_dict",
    "to_json",
    "from_json",
]
