"""Online mean and standard deviation using Welford's method."""

from __future__ import annotations

import math
from dataclasses import dataclass, field


@dataclass
class Welford:
    """Running average, variance and standard deviation of a series."""

    n: float = 0.0
    avg: float = 0.0
    std_dev: float = 0.0
    var: float = 0.0
    _m2: float = field(default=0.0, init=False, repr=False)

    def reset(self) -> None:
        """Return the computation to its initial all-zero state."""
        self.n = 0.0
        self.avg = 0.0
        self._m2 = 0.0
        self.std_dev = 0.0
        self.var = 0.0

    def add_value(self, val: float) -> None:
        """Add a value to the running computation."""
        if self.n == 0:
            self.n = 1.0
            self.avg = val
            return
        self.n += 1
        delta = val - self.avg
        self.avg += delta / self.n
        delta2 = val - self.avg
        self._m2 += delta * delta2
        self.var = self._m2 / (self.n - 1)
        self.std_dev = math.sqrt(self.var)

    def check_and_add_value(self, val: float, max_std_dev: float, max_val: float) -> bool:
        """Add ``val`` unless it exceeds both ``max_std_dev`` deviations and ``max_val``.

        Returns True when the value was added.
        """
        if self.n == 0:
            self.n = 1.0
            self.avg = val
            return True
        delta = val - self.avg
        mean = self.avg + delta / (self.n + 1)
        delta2 = val - mean
        m2 = self._m2 + delta * delta2
        stddev = math.sqrt(m2 / self.n)
        if val > max_std_dev * stddev and val > max_val:
            return False
        self.var = m2 / self.n
        self.n += 1
        self.avg = mean
        self.std_dev = stddev
        return True