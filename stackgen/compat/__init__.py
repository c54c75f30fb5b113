"""Selection-set compatibility checks.

Usage::

    from stackgen.compat import CompatibilityValidator

    result = CompatibilityValidator(store).validate(selections)
    if not result.is_valid:
        print(result.errors)
"""

from stackgen.compat.table import COMPATIBILITY_TABLE, Compatibility
from stackgen.compat.validator import CompatibilityValidator, validate_selections

__all__ = [
    "COMPATIBILITY_TABLE",
    "Compatibility",
    "CompatibilityValidator",
    "validate_selections",
]
