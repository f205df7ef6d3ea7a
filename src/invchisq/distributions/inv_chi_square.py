from typing import Tuple, Union

import numpy as np

from ..checks import (
    check_consistent_sizes,
    check_nonnegative,
    check_not_nan,
    check_positive_finite,
    max_size,
    size_zero,
)
from ..logging import logger
from ..special import (
    digamma,
    gamma_q,
    grad_reg_inc_gamma,
    lgamma,
    tgamma,
    upper_gamma_integral,
)
from ..types import ArrayLike, CDFResult, Operand, PartialsAccumulator, as_operand

Argument = Union[ArrayLike, Operand]


def _validate(function: str, y: Operand, nu: Operand) -> None:
    check_positive_finite(function, "Degrees of freedom parameter", nu.values)
    check_not_nan(function, "Random variable", y.values)
    check_nonnegative(function, "Random variable", y.values)
    check_consistent_sizes(
        function, "Random variable", y, "Degrees of freedom parameter", nu
    )


def _accumulate_log_partials(
    function: str,
    y: Operand,
    nu: Operand,
    partials: PartialsAccumulator,
) -> np.ndarray:
    r"""Add $\partial \log P_n / \partial \cdot$ of every position to `partials`.

    Positions with $y = \infty$ have $P_n = 1$ and are skipped. With
    $a = \nu / 2$ and $z = 1 / (2y)$ the density term
    $z^{a-1} e^{-z} / \Gamma(a)$ is evaluated on the log scale. Where
    $Q(a, z)$ underflows, $\log P_n$ and its partials come from
    `upper_gamma_integral` instead.

    Returns:
        np.ndarray: $\log P_n$ of the positions that were not skipped.
    """
    n = max_size(y, nu)
    y_idx = y.broadcast_index(n)
    nu_idx = nu.broadcast_index(n)

    # Per element of nu, shared by all positions that broadcast the same element
    log_gamma_vec = lgamma(0.5 * nu.values)
    if partials.requires("nu"):
        gamma_vec = tgamma(0.5 * nu.values)
        digamma_vec = digamma(0.5 * nu.values)

    finite = y.values[y_idx] != np.inf
    if not np.all(finite):
        logger.debug(
            f"{function}: skipping {int(np.sum(~finite))} of {n} positions "
            "with infinite variate."
        )
    y_idx = y_idx[finite]
    nu_idx = nu_idx[finite]

    y_inv = 1.0 / y.values[y_idx]
    half_nu = 0.5 * nu.values[nu_idx]
    z = 0.5 * y_inv
    log_kernel = (half_nu - 1.0) * np.log(z) - z - log_gamma_vec[nu_idx]

    p_n = gamma_q(half_nu, z)
    tail = p_n < np.finfo(np.float64).tiny
    log_p_n = np.empty_like(p_n)
    log_p_n[~tail] = np.log(p_n[~tail])
    if np.any(tail):
        logger.debug(
            f"{function}: {int(np.sum(tail))} of {n} factors underflow, "
            "using the integral form."
        )
        tail_j = upper_gamma_integral(half_nu[tail], z[tail])
        log_p_n[tail] = log_kernel[tail] + np.log(tail_j)

    if partials.requires("y"):
        partials.accumulate(
            "y", y_idx, 0.5 * y_inv**2 * np.exp(log_kernel - log_p_n)
        )
    if partials.requires("nu"):
        dig = digamma_vec[nu_idx]
        d_nu = np.empty_like(p_n)
        if not np.all(tail):
            d_nu[~tail] = (
                0.5
                * grad_reg_inc_gamma(
                    half_nu[~tail], z[~tail], gamma_vec[nu_idx][~tail], dig[~tail]
                )
                / p_n[~tail]
            )
        if np.any(tail):
            tail_k = upper_gamma_integral(half_nu[tail], z[tail], weighted=True)
            d_nu[tail] = 0.5 * (np.log(z[tail]) - dig[tail] + tail_k / tail_j)
        partials.accumulate("nu", nu_idx, d_nu)
    return log_p_n


def _prepare(
    y: Argument, nu: Argument
) -> Tuple[Operand, Operand, PartialsAccumulator]:
    y_op, nu_op = as_operand(y), as_operand(nu)
    return y_op, nu_op, PartialsAccumulator(y=y_op, nu=nu_op)


def inv_chi_square_cdf(y: Argument, nu: Argument) -> CDFResult:
    r"""Inverse chi-square cumulative distribution function and its gradient.

    For $Y = 1 / X$ with $X \sim \chi^2_\nu$ the CDF is
    $$
    F(y | \nu) = P(X \geq 1/y) = Q\left(\frac{\nu}{2}, \frac{1}{2y}\right)
    $$
    where $Q$ is the regularized upper incomplete gamma function. For
    sequences, the function returns the product of the per-position
    probabilities. `y` and `nu` must have the same length or one of them must
    be a scalar (or of length 1).

    Gradients are returned for every argument passed as
    `Operand.variable(...)`, one entry per element of that argument. Plain
    numbers and sequences are treated as constants and get no gradient entry.

    Edge cases:
    - If either argument is empty the result is $1$ with no gradients.
    - If any variate is exactly $0$ the result is $0$ and all requested
      gradients are $0$.
    - Positions with $y = \infty$ contribute a factor of $1$ and no gradient.
    - If the probability underflows to $0$, the requested gradients are $0$.

    Args:
        y (Argument): Variate(s), non-negative and not NaN.
        nu (Argument): Degrees of freedom, positive and finite.

    Raises:
        DomainError: If `nu` is not positive and finite, or `y` is NaN or negative.
        InvalidArgumentError: If the sizes of `y` and `nu` do not broadcast.

    Returns:
        CDFResult: The (joint) probability and the requested gradients.

    Examples:
        >>> from invchisq import Operand, inv_chi_square_cdf
        >>> res = inv_chi_square_cdf(Operand.variable(0.5), 3.0)
        >>> round(res.value, 4)
        0.5724
    """
    function = "inv_chi_square_cdf"
    y_op, nu_op, partials = _prepare(y, nu)

    if size_zero(y_op, nu_op):
        logger.debug(f"{function}: empty argument, returning 1.")
        return CDFResult(value=1.0)

    _validate(function, y_op, nu_op)
    logger.debug(
        f"{function}: broadcasting sizes {len(y_op)} and {len(nu_op)} "
        f"to {max_size(y_op, nu_op)}."
    )

    # The gradients at y = 0 are ill-defined and reported as zero
    if np.any(y_op.values == 0):
        logger.debug(f"{function}: zero variate, returning 0.")
        return partials.build(0.0)

    log_p_n = _accumulate_log_partials(function, y_op, nu_op, partials)
    P = float(np.prod(np.exp(log_p_n)))

    if P == 0.0:
        logger.debug(f"{function}: probability underflows, returning 0.")
        partials.reset()
        return partials.build(0.0)

    # Each slot holds d log(P_n); scaling by P gives dP
    partials.scale(P)
    return partials.build(P)


def inv_chi_square_lcdf(y: Argument, nu: Argument) -> CDFResult:
    r"""Log of the inverse chi-square cumulative distribution function.

    Returns $\sum_n \log Q(\nu_n / 2, 1 / (2 y_n))$ with its gradient, using the
    same broadcasting and edge-case rules as `inv_chi_square_cdf`: empty
    arguments give $0$, a zero variate gives $-\infty$ with zero gradients,
    and infinite variates contribute nothing. The value stays finite deep in
    the lower tail, where the probability itself underflows.

    Args:
        y (Argument): Variate(s), non-negative and not NaN.
        nu (Argument): Degrees of freedom, positive and finite.

    Raises:
        DomainError: If `nu` is not positive and finite, or `y` is NaN or negative.
        InvalidArgumentError: If the sizes of `y` and `nu` do not broadcast.

    Returns:
        CDFResult: The log probability and the requested gradients.
    """
    function = "inv_chi_square_lcdf"
    y_op, nu_op, partials = _prepare(y, nu)

    if size_zero(y_op, nu_op):
        logger.debug(f"{function}: empty argument, returning 0.")
        return CDFResult(value=0.0)

    _validate(function, y_op, nu_op)

    if np.any(y_op.values == 0):
        logger.debug(f"{function}: zero variate, returning -inf.")
        return partials.build(-np.inf)

    log_p_n = _accumulate_log_partials(function, y_op, nu_op, partials)
    return partials.build(float(np.sum(log_p_n)))


__all__ = ["inv_chi_square_cdf", "inv_chi_square_lcdf"]
