import numba as nb
import numpy as np
import scipy.integrate as integrate
import scipy.special as sp

from .config import get_config
from .error import DomainError
from .logging import logger

# Regularized incomplete gamma functions and their ingredients, from scipy.
# Q(a, x) = Gamma(a, x) / Gamma(a) and P(a, x) = 1 - Q(a, x).
gamma_q = sp.gammaincc
gamma_p = sp.gammainc
tgamma = sp.gamma
digamma = sp.digamma
lgamma = sp.gammaln


@nb.njit()
def _asymptotic_sum(a: float, z: float, precision: float, max_steps: int):
    r"""Derivative in $a$ of the large-$z$ expansion of $\Gamma(a, z)$.

    With $u_k(a) = (a-1)(a-2)\cdots(a-k)$ the expansion reads
    $\Gamma(a, z) \sim z^{a-1} e^{-z} \sum_{k \geq 0} u_k / z^k$. Returns
    $S = \sum_{k \geq 1} u_k'(a) / z^k$, truncated at the first two consecutive
    terms below `precision` relative to the sum, or at the smallest term once
    the (divergent) series starts to grow.
    """
    s = 0.0
    a_minus_one_minus_k = a - 1.0
    fac = a_minus_one_minus_k
    dfac = 1.0
    zpow = z
    delta = dfac / zpow
    smallest = abs(delta)
    for _ in range(max_steps):
        s += delta
        a_minus_one_minus_k -= 1.0
        zpow *= z
        dfac = a_minus_one_minus_k * dfac + fac
        fac *= a_minus_one_minus_k
        next_delta = dfac / zpow
        if abs(delta) <= precision * abs(s) and abs(next_delta) <= precision * abs(s):
            return s, True
        if next_delta != 0.0:
            if abs(next_delta) > smallest:
                return s, True
            smallest = abs(next_delta)
        delta = next_delta
    return s, False


@nb.njit()
def _series_sum(a: float, z: float, precision: float, max_steps: int):
    r"""Weighted power series for the derivative of $P(a, z)$ in $a$.

    $P(a, z) = z^a e^{-z} / \Gamma(a) \sum_k t_k$ with
    $t_k = z^k / (a (a+1) \cdots (a+k))$ and $\partial_a \log t_k = -H_k$,
    $H_k = \sum_{j \leq k} 1 / (a + j)$. Returns $B = \sum_k t_k H_k$.
    All terms are positive.
    """
    t = 1.0 / a
    h = 1.0 / a
    b = t * h
    for k in range(1, max_steps):
        t *= z / (a + k)
        h += 1.0 / (a + k)
        term = t * h
        b += term
        # Terms decrease once a + k > z
        if a + k > z and term <= precision * b:
            return b, True
    return b, False


_SERIES = 0
_ASYMPTOTIC = 1
_UPPER_INTEGRAL = 2


@nb.njit()
def _grad_reg_inc_gamma_kernel(
    a, z, dig, log_g, p, q, precision, max_steps, asymptotic_threshold
):
    n = a.shape[0]
    out = np.zeros(n)
    converged = np.ones(n, dtype=np.bool_)
    method = np.full(n, _SERIES, dtype=np.int8)
    for i in range(n):
        if z[i] == 0.0 or np.isinf(z[i]):
            # Q(a, 0) = 1 and Q(a, inf) = 0 for all a
            continue
        log_z = np.log(z[i])
        if z[i] > asymptotic_threshold and z[i] > 2.0 * a[i]:
            s, ok = _asymptotic_sum(a[i], z[i], precision, max_steps)
            out[i] = q[i] * (log_z - dig[i]) + (
                np.exp(-z[i] + (a[i] - 1.0) * log_z - log_g[i]) * s
            )
            converged[i] = ok
            method[i] = _ASYMPTOTIC
        elif z[i] > a[i]:
            # Left to upper_gamma_integral, the series cancels when Q is small
            method[i] = _UPPER_INTEGRAL
        else:
            b, ok = _series_sum(a[i], z[i], precision, max_steps)
            out[i] = np.exp(a[i] * log_z - z[i] - log_g[i]) * b - p[i] * (
                log_z - dig[i]
            )
            converged[i] = ok
    return out, converged, method


def _tail_integrand(a: float, z: float, weighted: bool):
    def integrand(s):
        log1p = np.log1p(s / z)
        value = np.exp(-s + (a - 1.0) * log1p)
        return value * log1p if weighted else value

    return integrand


def upper_gamma_integral(
    a, z, weighted: bool = False, precision: float | None = None
):
    r"""Integrals of the scaled upper incomplete gamma function.

    Substituting $t = z + s$ in $\Gamma(a, z) = \int_z^\infty t^{a-1} e^{-t} dt$
    gives $\Gamma(a, z) = z^{a-1} e^{-z} J$ with
    $$
    J = \int_0^\infty e^{-s} (1 + s/z)^{a-1} \, ds, \qquad
    K = \int_0^\infty e^{-s} (1 + s/z)^{a-1} \log(1 + s/z) \, ds,
    $$
    and $\partial_a \Gamma(a, z) = \Gamma(a, z) \log z + z^{a-1} e^{-z} K$.
    Both stay of moderate size where $Q(a, z)$ underflows, so that
    $\log Q = (a - 1) \log z - z - \log \Gamma(a) + \log J$ and
    $\partial_a \log Q = \log z - \psi(a) + K / J$.

    Args:
        a (float | np.ndarray): Shape argument, $a > 0$.
        z (float | np.ndarray): Integration limit, $z > 0$.
        weighted (bool, optional): Return $K$ instead of $J$. Defaults to False.
        precision (float, optional): Relative tolerance of the quadrature.
            Defaults to `get_config().precision`, but not below 1e-10.

    Returns:
        float | np.ndarray: $J$ or $K$, broadcast over the inputs.
    """
    precision = get_config().precision if precision is None else precision
    a, z = np.broadcast_arrays(
        np.asarray(a, dtype=np.float64), np.asarray(z, dtype=np.float64)
    )
    out = np.empty(a.shape)
    for i in np.ndindex(a.shape):
        out[i], _ = integrate.quad(
            _tail_integrand(a[i], z[i], weighted),
            0.0,
            np.inf,
            epsabs=0.0,
            epsrel=max(precision, 1e-10),
            limit=200,
        )
    if out.ndim == 0:
        return float(out)
    return out


def grad_reg_inc_gamma(
    a,
    z,
    g,
    dig,
    precision: float | None = None,
    max_steps: int | None = None,
):
    r"""Gradient of the regularized upper incomplete gamma function in $a$.

    Computes
    $$
    \frac{\partial}{\partial a} Q(a, z), \qquad Q(a, z) = \frac{\Gamma(a, z)}{\Gamma(a)}
    $$
    for $a > 0$ and $z \geq 0$. $\Gamma(a)$ and $\psi(a)$ are passed in, so that
    callers evaluating many $z$ for the same $a$ compute them once.

    Three representations are used:

    - $z \leq a$: the positive-term power series of the lower function
      $\gamma(a, z)$, differentiated term by term.
    - $z$ larger than the configured `asymptotic_threshold` and larger
      than $2a$: the large-$z$ asymptotic expansion of $\Gamma(a, z)$.
    - Otherwise: $\Gamma(a, z)$ written as an integral over $[z, \infty)$ and
      differentiated under the integral sign, evaluated with
      `scipy.integrate.quad`.

    If `g` overflows, $\log \Gamma(a)$ is taken from `scipy.special.gammaln`.

    Args:
        a (float | np.ndarray): Shape argument, $a > 0$.
        z (float | np.ndarray): Integration limit, $z \geq 0$.
        g (float | np.ndarray): $\Gamma(a)$.
        dig (float | np.ndarray): $\psi(a)$, the digamma function at $a$.
        precision (float, optional): Relative stopping tolerance of the series.
            Defaults to `get_config().precision`.
        max_steps (int, optional): Maximum number of series terms.
            Defaults to `get_config().max_steps`.

    Raises:
        DomainError: If a series did not converge within `max_steps` terms.

    Returns:
        float | np.ndarray: $\partial Q / \partial a$, broadcast over the inputs.
    """
    config = get_config()
    precision = config.precision if precision is None else precision
    max_steps = config.max_steps if max_steps is None else max_steps

    a, z, g, dig = np.broadcast_arrays(
        *(np.asarray(v, dtype=np.float64) for v in (a, z, g, dig))
    )
    shape = a.shape
    a, z, g, dig = (np.ascontiguousarray(v.ravel()) for v in (a, z, g, dig))

    with np.errstate(divide="ignore", over="ignore", invalid="ignore"):
        log_g = np.where(np.isfinite(g) & (g > 0), np.log(g), sp.gammaln(a))
    q = gamma_q(a, z)
    out, converged, method = _grad_reg_inc_gamma_kernel(
        a,
        z,
        dig,
        log_g,
        gamma_p(a, z),
        q,
        float(precision),
        int(max_steps),
        float(config.asymptotic_threshold),
    )

    if not np.all(converged):
        i = int(np.flatnonzero(~converged)[0])
        raise DomainError(
            "grad_reg_inc_gamma: series did not converge within "
            f"max_steps={max_steps} terms for a={a[i]}, z={z[i]}."
        )

    for i in np.flatnonzero(method == _UPPER_INTEGRAL):
        log_z = np.log(z[i])
        out[i] = q[i] * (log_z - dig[i]) + np.exp(
            -z[i] + (a[i] - 1.0) * log_z - log_g[i]
        ) * upper_gamma_integral(a[i], z[i], weighted=True, precision=precision)

    logger.debug(
        f"grad_reg_inc_gamma: {a.shape[0]} evaluations, "
        f"{int(np.sum(method == _SERIES))} series, "
        f"{int(np.sum(method == _ASYMPTOTIC))} asymptotic, "
        f"{int(np.sum(method == _UPPER_INTEGRAL))} quadrature."
    )

    out = out.reshape(shape)
    if out.ndim == 0:
        return float(out)
    return out


__all__ = [
    "gamma_q",
    "gamma_p",
    "tgamma",
    "digamma",
    "lgamma",
    "upper_gamma_integral",
    "grad_reg_inc_gamma",
]
