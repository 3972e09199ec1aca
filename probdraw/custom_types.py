# custom_types.py
"""
Type aliases shared across probdraw.

Conventions:
- Annotate function input with `ArrayLike`
- Annotate function output with `Array`
- Scalar probabilities may be given as `Probability` (float or exact Fraction)
"""
from __future__ import annotations
from fractions import Fraction
from typing import TypeAlias, TypeVar, Union
from numpy.random import Generator as NumpyRNG

from numpy.typing import (
    NDArray as NumpyArray,
    ArrayLike as NumpyArrayLike
)

Array = NumpyArray
ArrayLike: TypeAlias = NumpyArrayLike
PRNG: TypeAlias = NumpyRNG
Probability: TypeAlias = Union[float, Fraction]

T = TypeVar("T")
