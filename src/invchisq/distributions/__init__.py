from .inv_chi_square import inv_chi_square_cdf, inv_chi_square_lcdf

__all__ = [
    "inv_chi_square_cdf",
    "inv_chi_square_lcdf",
]
