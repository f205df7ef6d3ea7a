from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Union

import numpy as np

from .error import InvalidArgumentError

ArrayLike = Union[float, int, Sequence[float], np.ndarray]


class Operand:
    r"""A scalar or a 1-D sequence of reals, seen through a broadcasting view.

    The operand carries a gradient requirement. Constants never get a
    gradient slot, variables always do, even if the computed gradient is zero.

    Args:
        values (ArrayLike): A real number or a 1-D sequence of real numbers.
        requires_grad (bool, optional): Whether partial derivatives with
            respect to this operand are computed. Defaults to False, or to the
            requirement of `values` if it is an `Operand`.
    """

    def __init__(
        self, values: ArrayLike, requires_grad: Optional[bool] = None
    ) -> None:
        if isinstance(values, Operand):
            self.requires_grad = (
                values.requires_grad if requires_grad is None else bool(requires_grad)
            )
            self.is_scalar = values.is_scalar
            self.values = values.values
            return
        self.requires_grad = bool(requires_grad)
        arr = np.asarray(values, dtype=np.float64)
        if arr.ndim > 1:
            raise InvalidArgumentError(
                f"Operand must be a scalar or a 1-D sequence, got shape {arr.shape}."
            )
        self.is_scalar = arr.ndim == 0
        self.values = np.atleast_1d(arr)

    @classmethod
    def constant(cls, values: ArrayLike) -> "Operand":
        return cls(values, requires_grad=False)

    @classmethod
    def variable(cls, values: ArrayLike) -> "Operand":
        return cls(values, requires_grad=True)

    def __len__(self) -> int:
        return self.values.shape[0]

    def __getitem__(self, n: int) -> float:
        # Scalars replicate element 0 for every broadcast position
        if len(self) == 1:
            return float(self.values[0])
        return float(self.values[n])

    def __repr__(self) -> str:
        kind = "variable" if self.requires_grad else "constant"
        return f"Operand({kind}, values={self.values!r})"

    def broadcast_index(self, n: int) -> np.ndarray:
        """Map broadcast positions `0..n-1` to own element indices."""
        if len(self) == n:
            return np.arange(n)
        if len(self) == 1:
            return np.zeros(n, dtype=np.intp)
        raise InvalidArgumentError(
            f"size mismatch: cannot broadcast operand of size {len(self)} to size {n}."
        )


def as_operand(values: Union[ArrayLike, Operand]) -> Operand:
    """Wrap plain input as a constant operand; pass operands through."""
    if isinstance(values, Operand):
        return values
    return Operand.constant(values)


@dataclass(frozen=True)
class CDFResult:
    """Value of a (log) CDF and the gradients of the variables it depends on.

    Attributes:
        value (float): The joint probability (or its logarithm).
        gradients (Dict[str, np.ndarray]): One array per operand that requires
            a gradient, of that operand's own length. Constant operands
            have no entry.
    """

    value: float
    gradients: Dict[str, np.ndarray] = field(default_factory=dict)

    def grad(self, name: str) -> Optional[np.ndarray]:
        return self.gradients.get(name)

    def __float__(self) -> float:
        return float(self.value)


class PartialsAccumulator:
    """Gradient buffers for the operands of one call.

    A buffer is only allocated for operands with `requires_grad=True`.
    Contributions of broadcast positions that share an element are summed.
    """

    def __init__(self, **operands: Operand) -> None:
        self.partials: Dict[str, np.ndarray] = {
            name: np.zeros(len(op), dtype=np.float64)
            for name, op in operands.items()
            if op.requires_grad
        }

    def requires(self, name: str) -> bool:
        return name in self.partials

    def accumulate(self, name: str, index: np.ndarray, contributions: np.ndarray) -> None:
        # Unbuffered, so repeated indices add up instead of overwriting
        np.add.at(self.partials[name], index, contributions)

    def reset(self) -> None:
        for buffer in self.partials.values():
            buffer.fill(0.0)

    def scale(self, factor: float) -> None:
        for buffer in self.partials.values():
            buffer *= factor

    def build(self, value: float) -> CDFResult:
        return CDFResult(
            value=float(value),
            gradients={name: buffer.copy() for name, buffer in self.partials.items()},
        )


__all__ = [
    "ArrayLike",
    "Operand",
    "as_operand",
    "CDFResult",
    "PartialsAccumulator",
]
