from typing import Sequence, Tuple

import numpy as np


class LinearScale:
    """Maps an abstract radius unit to pixels with a linear interpolation.

    Values outside of the domain are extrapolated unless ``clamp`` is set. The scale is monotonic as long as the
    range is non-decreasing.
    """

    def __init__(
        self,
        domain: Sequence[float] = (0.0, 1.0),
        range: Sequence[float] = (0.0, 1.0),
        clamp: bool = False,
    ):
        if len(domain) != 2 or len(range) != 2:
            raise ValueError("A scale expects a domain and a range of exactly two values.")
        self.domain: Tuple[float, float] = (float(domain[0]), float(domain[1]))
        self.range: Tuple[float, float] = (float(range[0]), float(range[1]))
        self.clamp = clamp

    def _normalize(self, value):
        d0, d1 = self.domain
        span = d1 - d0
        t = (np.asarray(value, float) - d0) / span if span != 0 else np.full_like(value, 0.5, dtype=float)
        return np.clip(t, 0.0, 1.0) if self.clamp else t

    def __call__(self, value):
        r0, r1 = self.range
        result = r0 + self._normalize(value) * (r1 - r0)
        return float(result) if np.ndim(result) == 0 else result


class SqrtScale(LinearScale):
    """Square root scale, so that a circle area grows linearly with the input."""

    def _normalize(self, value):
        d0, d1 = np.sqrt(np.maximum(self.domain, 0.0))
        span = d1 - d0
        v = np.sqrt(np.maximum(np.asarray(value, float), 0.0))
        t = (v - d0) / span if span != 0 else np.full_like(v, 0.5)
        return np.clip(t, 0.0, 1.0) if self.clamp else t
