from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Literal, Tuple

import numpy as np

from . import HAS_MPL
from .base import DiagnosticDisplay
from .error import check_matplotlib
from .types import CDFResult, Operand, as_operand

if TYPE_CHECKING:
    import matplotlib.pyplot as plt

CDFFunction = Callable[..., CDFResult]


def _plain(op: Operand, values: np.ndarray):
    return float(values[0]) if op.is_scalar else values


def finite_difference_gradient(
    function: CDFFunction,
    y,
    nu,
    wrt: Literal["y", "nu"] = "y",
    step: float = 1e-6,
) -> np.ndarray:
    r"""Central difference approximation of the gradient of `function`.

    Each element $x_i$ of the argument `wrt` is perturbed by
    $h_i = \text{step} \cdot \max(|x_i|, 1)$ and the derivative is
    approximated by $(f(x_i + h_i) - f(x_i - h_i)) / (2 h_i)$.

    Args:
        function (CDFFunction): E.g. `inv_chi_square_cdf`.
        y: Variate(s).
        nu: Degrees of freedom.
        wrt (Literal["y", "nu"], optional): Argument to differentiate. Defaults to "y".
        step (float, optional): Relative step size. Defaults to 1e-6.

    Returns:
        np.ndarray: One derivative per element of the argument `wrt`.
    """
    if wrt not in ("y", "nu"):
        raise ValueError(f"wrt must be 'y' or 'nu', got {wrt!r}")

    operands = {"y": as_operand(y), "nu": as_operand(nu)}
    args = {name: _plain(op, op.values) for name, op in operands.items()}
    target = operands[wrt]
    x = target.values.copy()
    grad = np.empty_like(x)
    for i in range(x.shape[0]):
        h = step * max(abs(x[i]), 1.0)
        upper, lower = x.copy(), x.copy()
        upper[i] += h
        lower[i] -= h
        f_upper = function(**{**args, wrt: _plain(target, upper)}).value
        f_lower = function(**{**args, wrt: _plain(target, lower)}).value
        grad[i] = (f_upper - f_lower) / (2 * h)
    return grad


class GradientCheckDisplay(DiagnosticDisplay):
    """Compare analytic gradients with central differences."""

    def __init__(self, analytic, numeric, wrt):
        self.analytic_ = analytic
        self.numeric_ = numeric
        self.wrt_ = wrt
        with np.errstate(divide="ignore", invalid="ignore"):
            self.relative_error_ = np.abs(analytic - numeric) / np.maximum(
                np.abs(numeric), np.finfo(float).tiny
            )

    @classmethod
    def from_function(
        cls,
        function: CDFFunction,
        y,
        nu,
        ax: plt.Axes = None,
        figsize: Tuple[float, float] = (10, 5),
        wrt: Literal["y", "nu"] = "y",
        step: float = 1e-6,
        **kwargs,
    ) -> "GradientCheckDisplay":
        args = {"y": y, "nu": nu}
        args[wrt] = Operand.variable(args[wrt])
        analytic = function(**args).grad(wrt)
        numeric = finite_difference_gradient(function, y, nu, wrt=wrt, step=step)
        return cls(analytic, numeric, wrt).plot(ax=ax, figsize=figsize, **kwargs)

    def plot(
        self,
        ax: plt.Axes = None,
        figsize: Tuple[float, float] = (10, 5),
        **kwargs,
    ) -> "GradientCheckDisplay":
        check_matplotlib(HAS_MPL)
        import matplotlib.pyplot as plt  # noqa: F401

        color = kwargs.pop("color", "black")
        marker = kwargs.pop("marker", "o")

        if ax is None:
            _, ax = plt.subplots(figsize=figsize)
        ax.set_title(f"Gradient check with respect to {self.wrt_}")
        ax.scatter(self.numeric_, self.analytic_, color=color, marker=marker, **kwargs)
        lims = [
            min(np.min(self.numeric_), np.min(self.analytic_)),
            max(np.max(self.numeric_), np.max(self.analytic_)),
        ]
        ax.plot(lims, lims, color="red", ls="--")
        ax.set_xlabel("Central difference")
        ax.set_ylabel("Analytic")
        ax.grid()

        self.ax_ = ax
        self.figure_ = ax.figure

        return self


class CDFCurveDisplay(DiagnosticDisplay):
    """Plot the CDF over a grid of variates for fixed degrees of freedom."""

    def __init__(self, y, nu, cdf):
        self.y_ = y
        self.nu_ = nu
        self.cdf_ = cdf

    @classmethod
    def from_function(
        cls,
        function: CDFFunction,
        y,
        nu,
        ax: plt.Axes = None,
        figsize: Tuple[float, float] = (10, 5),
        **kwargs,
    ) -> "CDFCurveDisplay":
        y = np.asarray(y, dtype=float)
        cdf = np.array([function(y_i, nu).value for y_i in y])
        return cls(y, nu, cdf).plot(ax=ax, figsize=figsize, **kwargs)

    def plot(
        self,
        ax: plt.Axes = None,
        figsize: Tuple[float, float] = (10, 5),
        **kwargs,
    ) -> "CDFCurveDisplay":
        check_matplotlib(HAS_MPL)
        import matplotlib.pyplot as plt  # noqa: F401

        color = kwargs.pop("color", "black")

        if ax is None:
            _, ax = plt.subplots(figsize=figsize)
        ax.set_title(f"CDF for nu = {self.nu_}")
        ax.plot(self.y_, self.cdf_, color=color, **kwargs)
        ax.set_xlabel("y")
        ax.set_ylabel("F(y)")
        ax.set_ylim(0, 1)
        ax.grid()

        self.ax_ = ax
        self.figure_ = ax.figure

        return self


__all__ = [
    "finite_difference_gradient",
    "GradientCheckDisplay",
    "CDFCurveDisplay",
]
