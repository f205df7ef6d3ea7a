class DomainError(ValueError):
    r"""Exception raised for arguments outside the domain of a function.

    Raised for non-positive or non-finite degrees of freedom, for negative or
    NaN variates, and when an internal series fails to converge.
    """

    def __init__(self, message="This value is outside of the domain."):
        self.message = message
        super().__init__(self.message)


class InvalidArgumentError(ValueError):
    r"""Exception raised for arguments of incompatible size or shape."""

    def __init__(self, message="Invalid argument."):
        self.message = message
        super().__init__(self.message)


def check_matplotlib(has_mpl: bool) -> None:
    r"""Check if matplotlib is available."""
    if not has_mpl:
        raise ImportError(
            "Matplotlib is required for plotting. "
            "Please install it with 'pip install matplotlib'."
        )
