"""Category weight validation.

Pure function shared by the API (reported on every rubric response so
editors can see what is left to allocate) and the activator (which
refuses to promote a draft whose weights are off).
"""

from typing import Any, Iterable, Mapping

from app.core.constants import TOTAL_WEIGHT, WEIGHT_TOLERANCE
from app.schemas.rubric import WeightValidation


def _read(category: Any, name: str, default: Any = None) -> Any:
    if isinstance(category, Mapping):
        return category.get(name, default)
    return getattr(category, name, default)


def _format(amount: float) -> str:
    return f"{amount:g}"


def validate_category_weights(categories: Iterable[Any]) -> WeightValidation:
    """Check that enabled category weights sum to 100 within tolerance.

    Accepts ORM rows, Pydantic models or plain dicts.  Only categories
    whose ``is_enabled`` is not explicitly ``False`` count.
    """
    total = 0.0
    for category in categories:
        if _read(category, "is_enabled", True) is False:
            continue
        total += float(_read(category, "weight", 0) or 0)

    remaining = TOTAL_WEIGHT - total
    is_valid = abs(remaining) < WEIGHT_TOLERANCE
    rounded_total = round(total, 2)
    rounded_remaining = round(remaining, 2)

    if is_valid:
        message = None
    elif remaining > 0:
        message = f"{_format(rounded_remaining)}% remaining to allocate"
    else:
        message = f"{_format(abs(rounded_remaining))}% over the limit"

    return WeightValidation(
        is_valid=is_valid,
        total=rounded_total,
        remaining=rounded_remaining,
        message=message,
    )
