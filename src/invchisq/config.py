from contextlib import contextmanager
from dataclasses import asdict, dataclass, replace
from typing import Iterator, Optional

from .logging import LOG_LEVEL, logger, set_log_level


@dataclass(frozen=True)
class NumericalConfig:
    """Numerical settings for the special-function adapter.

    Attributes:
        precision (float): Relative size of the last series term at which the
            expansions in `grad_reg_inc_gamma` stop.
        max_steps (int): Maximum number of series terms before a
            `DomainError` is raised.
        asymptotic_threshold (float): Lower bound on $z$ above which the
            large-$z$ asymptotic expansion is used (together with $z > 2a$).
    """

    precision: float = 1e-12
    max_steps: int = 100_000
    asymptotic_threshold: float = 30.0


_config = NumericalConfig()


def _validate(config: NumericalConfig) -> None:
    if not 0 < config.precision < 1:
        raise ValueError(f"precision must be in (0, 1), got {config.precision}")
    if config.max_steps < 1:
        raise ValueError(f"max_steps must be at least 1, got {config.max_steps}")
    if config.asymptotic_threshold <= 0:
        raise ValueError(
            "asymptotic_threshold must be positive, "
            f"got {config.asymptotic_threshold}"
        )


def get_config() -> NumericalConfig:
    """Return the active numerical configuration."""
    return _config


def set_config(log_level: Optional[LOG_LEVEL] = None, **changes) -> NumericalConfig:
    """Update the global configuration.

    Args:
        log_level (LOG_LEVEL, optional): If given, forwarded to `set_log_level`.
        **changes: Fields of `NumericalConfig` to replace.

    Raises:
        ValueError: If a value is out of range.
        TypeError: If an unknown field is passed.

    Returns:
        NumericalConfig: The new configuration.
    """
    global _config

    if log_level is not None:
        set_log_level(log_level)

    new_config = replace(_config, **changes)
    _validate(new_config)
    _config = new_config
    if changes:
        logger.debug(f"Numerical configuration updated: {asdict(_config)}")
    return _config


@contextmanager
def config_context(**changes) -> Iterator[NumericalConfig]:
    """Temporarily change the configuration inside a `with` block."""
    global _config

    previous = _config
    try:
        yield set_config(**changes)
    finally:
        _config = previous


__all__ = [
    "NumericalConfig",
    "get_config",
    "set_config",
    "config_context",
]
