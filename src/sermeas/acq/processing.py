from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Union

import numpy as np

if TYPE_CHECKING:
    from .runner import MeasurementResult

# One raw count is 118 µV.
VOLTS_PER_COUNT_NUMERATOR = 118
VOLTS_PER_COUNT_DIVISOR = 1_000_000


def to_voltage(raw: int) -> float:
    return raw * VOLTS_PER_COUNT_NUMERATOR / VOLTS_PER_COUNT_DIVISOR


@dataclass(frozen=True)
class VoltageSeries:
    """Voltages in acquisition order; the backing array is read-only."""

    values: np.ndarray

    def __len__(self) -> int:
        return int(self.values.size)

    def __iter__(self):
        return iter(self.values.tolist())

    def __getitem__(self, index: int) -> float:
        return float(self.values[index])


def convert_to_voltage(
    result: Union["MeasurementResult", Iterable[int]],
) -> VoltageSeries:
    samples = getattr(result, "samples", result)
    raw = np.asarray(list(samples), dtype=float)
    volts = raw * VOLTS_PER_COUNT_NUMERATOR / VOLTS_PER_COUNT_DIVISOR
    volts.flags.writeable = False
    return VoltageSeries(values=volts)
