"""Validation of user-entered set data."""

import math

from ..config import MAX_REPS, MAX_WEIGHT
from ..exceptions import SetInputError


def _coerce_number(value, name: str) -> float:
    if isinstance(value, bool):
        raise SetInputError(f"{name} must be a number")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise SetInputError(f"{name} must be a number, got {value!r}") from None
    else:
        raise SetInputError(f"{name} must be a number")
    if math.isnan(number) or math.isinf(number):
        raise SetInputError(f"{name} must be a number, got {value!r}")
    return number


def validate_set_input(reps, weight) -> tuple[int, float | None]:
    """Return cleaned ``(reps, weight)`` or raise :class:`SetInputError`.

    Reps must be a whole number between 0 and 999. Weight may be empty
    (bodyweight) or a number between 0 and 9999.
    """
    if reps is None or (isinstance(reps, str) and not reps.strip()):
        raise SetInputError("Reps are required")
    reps_value = _coerce_number(reps, "Reps")
    if not reps_value.is_integer():
        raise SetInputError("Reps must be a whole number")
    if reps_value < 0 or reps_value > MAX_REPS:
        raise SetInputError(f"Reps must be between 0 and {MAX_REPS}")

    if weight is None or (isinstance(weight, str) and not weight.strip()):
        return int(reps_value), None
    weight_value = _coerce_number(weight, "Weight")
    if weight_value < 0 or weight_value > MAX_WEIGHT:
        raise SetInputError(f"Weight must be between 0 and {MAX_WEIGHT}")
    return int(reps_value), weight_value
