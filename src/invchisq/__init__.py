# ruff: noqa: E402

from importlib.metadata import version
from importlib.util import find_spec

HAS_MPL = False

if find_spec("matplotlib") is not None:
    HAS_MPL = True

from . import (
    base,
    checks,
    config,
    diagnostics,
    distributions,
    error,
    special,
    types,
)
from .config import get_config, set_config
from .distributions import inv_chi_square_cdf, inv_chi_square_lcdf
from .logging import set_log_level
from .types import CDFResult, Operand

__version__ = version("invchisq")

__all__ = [
    "base",
    "checks",
    "config",
    "diagnostics",
    "distributions",
    "error",
    "special",
    "types",
    "CDFResult",
    "Operand",
    "inv_chi_square_cdf",
    "inv_chi_square_lcdf",
    "get_config",
    "set_config",
    "set_log_level",
]
