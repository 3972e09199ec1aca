# errors.py
"""
Exception types raised by probdraw.

Two failure kinds are library specific:

- `ParameterError`: the parameters handed to a distribution constructor
  violate an invariant of the family. The instance is never created.
- `DomainError`: the distribution is valid, but the requested quantity is not
  defined for its parameters (e.g. the mean of an inverse-gamma law with
  shape <= 1).

Operations that are recognised but deliberately unsupported raise the builtin
`NotImplementedError`; linear-algebra failures surface as
`numpy.linalg.LinAlgError`.
"""

__all__ = [
    "ParameterError",
    "DomainError",
]


class ParameterError(ValueError):
    """Invalid constructor parameters for a distribution family."""


class DomainError(ArithmeticError):
    """Quantity queried outside its domain of definition."""

    def __init__(self, quantity: str, family: str, condition: str) -> None:
        self.quantity = quantity
        self.family = family
        self.condition = condition
        super().__init__(f"{quantity} of {family} is only defined for {condition}.")
