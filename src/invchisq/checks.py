import numpy as np

from .error import DomainError, InvalidArgumentError
from .types import Operand


def _first_offender(values: np.ndarray, bad: np.ndarray) -> str:
    i = int(np.flatnonzero(bad)[0])
    if values.shape[0] == 1:
        return f"{values[i]}"
    return f"{values[i]} at index [{i}]"


def check_positive_finite(function: str, name: str, values: np.ndarray) -> None:
    """Raise a `DomainError` unless every element is finite and > 0."""
    values = np.atleast_1d(values)
    bad = ~(np.isfinite(values) & (values > 0))
    if np.any(bad):
        raise DomainError(
            f"{function}: {name} must be positive and finite, "
            f"but is {_first_offender(values, bad)}."
        )


def check_not_nan(function: str, name: str, values: np.ndarray) -> None:
    """Raise a `DomainError` if any element is NaN."""
    values = np.atleast_1d(values)
    bad = np.isnan(values)
    if np.any(bad):
        raise DomainError(
            f"{function}: {name} must not be NaN, "
            f"but is {_first_offender(values, bad)}."
        )


def check_nonnegative(function: str, name: str, values: np.ndarray) -> None:
    """Raise a `DomainError` if any element is < 0.

    NaN is not caught here, use `check_not_nan` first.
    """
    values = np.atleast_1d(values)
    bad = values < 0
    if np.any(bad):
        raise DomainError(
            f"{function}: {name} must be non-negative, "
            f"but is {_first_offender(values, bad)}."
        )


def size_zero(*operands: Operand) -> bool:
    return any(len(op) == 0 for op in operands)


def max_size(*operands: Operand) -> int:
    return max(len(op) for op in operands)


def check_consistent_sizes(
    function: str,
    name1: str,
    operand1: Operand,
    name2: str,
    operand2: Operand,
) -> None:
    """Raise an `InvalidArgumentError` unless both operands broadcast.

    Two operands broadcast if their sizes are equal or one of them has size 1.
    """
    n = max_size(operand1, operand2)
    for name, op in ((name1, operand1), (name2, operand2)):
        if len(op) not in (1, n):
            raise InvalidArgumentError(
                f"{function}: size mismatch: {name1} has size {len(operand1)}, "
                f"{name2} has size {len(operand2)}; {name} must have size 1 or {n}."
            )


__all__ = [
    "check_positive_finite",
    "check_not_nan",
    "check_nonnegative",
    "check_consistent_sizes",
    "size_zero",
    "max_size",
]
