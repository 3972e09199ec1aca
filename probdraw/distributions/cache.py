# distributions/cache.py
"""
Lazily computed, memoized quantities derived from a distribution's canonical
parameters: normalizing constants, matrix square roots, alias tables, sampler
constants.

Distributions are immutable after construction, so a derived value is computed
at most once per instance and never invalidated. Each instance owns a private
slot dictionary and a re-entrant lock; the lock makes concurrent first access
compute a single value, and re-entrancy lets one derived quantity be computed
from another (e.g. a log-density constant from a Cholesky root).
"""

from __future__ import annotations

import functools
import logging
import threading
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

__all__ = [
    "get_or_compute",
    "is_computed",
    "derived",
]

R = TypeVar("R")

_SLOTS = "_derived_slots"
_LOCK = "_derived_lock"
# guards creation of the per-instance slots/lock themselves
_INIT_LOCK = threading.Lock()


def _storage(instance: Any) -> tuple[dict[str, Any], threading.RLock]:
    try:
        return instance.__dict__[_SLOTS], instance.__dict__[_LOCK]
    except KeyError:
        with _INIT_LOCK:
            d = instance.__dict__
            if _SLOTS not in d:
                d[_LOCK] = threading.RLock()
                d[_SLOTS] = {}
            return d[_SLOTS], d[_LOCK]


def get_or_compute(instance: Any, name: str, compute_fn: Callable[[Any], R]) -> R:
    """Return the memoized quantity `name` of `instance`, computing it once.

    `compute_fn(instance)` must be a pure function of the instance's canonical
    parameters. If it raises, nothing is stored and the next call retries.
    """
    slots, lock = _storage(instance)
    try:
        return slots[name]
    except KeyError:
        pass

    with lock:
        if name not in slots:
            logger.debug("computing %s for %s", name, type(instance).__name__)
            slots[name] = compute_fn(instance)
        return slots[name]


def is_computed(instance: Any, name: str) -> bool:
    """True if `name` has already been computed for `instance`."""
    return name in instance.__dict__.get(_SLOTS, {})


def derived(method: Callable[[Any], R]) -> Callable[[Any], R]:
    """Decorator turning a zero-argument method into a cached derived quantity.

    The quantity is keyed by the method name::

        class Normal(Univariate):
            @derived
            def std(self) -> float:
                return math.sqrt(self._variance)
    """
    name = method.__name__

    @functools.wraps(method)
    def accessor(self: Any) -> R:
        return get_or_compute(self, name, method)

    return accessor
