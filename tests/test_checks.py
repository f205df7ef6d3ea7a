import numpy as np
import pytest

from invchisq.checks import (
    check_consistent_sizes,
    check_nonnegative,
    check_not_nan,
    check_positive_finite,
    max_size,
    size_zero,
)
from invchisq.error import DomainError, InvalidArgumentError
from invchisq.types import Operand


def test_check_positive_finite():
    check_positive_finite("f", "x", np.array([0.1, 1.0, 1e300]))
    for bad in [0.0, -1.0, np.inf, np.nan]:
        with pytest.raises(DomainError, match="x must be positive and finite"):
            check_positive_finite("f", "x", np.array([1.0, bad]))


def test_check_not_nan_and_nonnegative():
    check_not_nan("f", "x", np.array([0.0, np.inf]))
    check_nonnegative("f", "x", np.array([0.0, np.inf]))
    with pytest.raises(DomainError, match="must not be NaN"):
        check_not_nan("f", "x", np.array([np.nan]))
    with pytest.raises(DomainError, match="must be non-negative"):
        check_nonnegative("f", "x", np.array([-np.inf]))


def test_error_message_reports_function_and_index():
    with pytest.raises(DomainError) as excinfo:
        check_nonnegative("my_function", "Random variable", np.array([1.0, 2.0, -3.0]))
    message = str(excinfo.value)
    assert message.startswith("my_function: Random variable")
    assert "-3.0 at index [2]" in message


def test_check_consistent_sizes():
    three = Operand([1.0, 2.0, 3.0])
    check_consistent_sizes("f", "a", three, "b", Operand(1.0))
    check_consistent_sizes("f", "a", Operand([1.0]), "b", three)
    check_consistent_sizes("f", "a", three, "b", Operand([4.0, 5.0, 6.0]))
    with pytest.raises(InvalidArgumentError, match="size mismatch"):
        check_consistent_sizes("f", "a", three, "b", Operand([1.0, 2.0]))


def test_size_helpers():
    assert size_zero(Operand([]), Operand(1.0))
    assert not size_zero(Operand([1.0]), Operand(1.0))
    assert max_size(Operand([1.0, 2.0]), Operand(1.0)) == 2
