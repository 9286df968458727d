from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import pandas as pd

from .frames import FRAME_SIZE, TextDecoder, decode_frames
from .processing import convert_to_voltage
from .transport import ByteTransport

logger = logging.getLogger(__name__)

RawCallback = Callable[[bytes], None]


class AcquisitionMode(str, enum.Enum):
    BINARY = "binary"
    TEXT = "text"


class AcquisitionError(RuntimeError):
    """Base class for failures while collecting a batch."""


class ShortfallError(AcquisitionError):
    def __init__(self, expected: int, received: int):
        super().__init__(f"Expected {expected} samples but decoded only {received}")
        self.expected = expected
        self.received = received


class AcquisitionTimeout(AcquisitionError):
    def __init__(self, received: int, expected: int, idle_timeout_s: float):
        super().__init__(
            f"No input for {idle_timeout_s:g}s after {received} of {expected} bytes"
        )
        self.received = received
        self.expected = expected


class AcquisitionCancelled(AcquisitionError):
    pass


@dataclass(frozen=True)
class MeasurementResult:
    samples: Tuple[int, ...]
    elapsed_s: float
    mode: AcquisitionMode
    soft_failures: int = 0
    frames_found: int = 0

    @property
    def sample_count(self) -> int:
        return len(self.samples)

    @property
    def throughput_sps(self) -> float:
        if self.elapsed_s <= 0:
            return float("inf")
        return self.sample_count / self.elapsed_s

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"raw": list(self.samples), "volts": convert_to_voltage(self).values}
        )


class BinaryAcquisition:
    """
    Collects 4*n bytes one at a time, then decodes `<lh>` frames.

    An empty read is retried straight away. The wait is bounded by
    *idle_timeout_s* since the last received byte; None waits forever.
    """

    mode = AcquisitionMode.BINARY

    def __init__(
        self,
        idle_timeout_s: Optional[float] = 5.0,
        cancel: Optional[threading.Event] = None,
        raw_callback: Optional[RawCallback] = None,
    ):
        self.idle_timeout_s = idle_timeout_s
        self.cancel = cancel
        self.raw_callback = raw_callback
        self.frames_found = 0

    def acquire(self, transport: ByteTransport, n: int) -> Tuple[List[int], float]:
        expected = FRAME_SIZE * n
        buffer = bytearray()
        start = time.perf_counter()
        transport.flush_input()
        last_input = time.monotonic()
        while len(buffer) < expected:
            if self.cancel is not None and self.cancel.is_set():
                raise AcquisitionCancelled(f"Cancelled after {len(buffer)} of {expected} bytes")
            byte = transport.read_byte()
            if not byte:
                if (
                    self.idle_timeout_s is not None
                    and time.monotonic() - last_input > self.idle_timeout_s
                ):
                    raise AcquisitionTimeout(len(buffer), expected, self.idle_timeout_s)
                continue
            buffer += byte[:1]
            last_input = time.monotonic()
        elapsed = time.perf_counter() - start

        if self.raw_callback is not None:
            self.raw_callback(bytes(buffer))
        samples = decode_frames(buffer)
        self.frames_found = len(samples)
        if len(samples) < n:
            raise ShortfallError(n, len(samples))
        if len(samples) > n:
            logger.warning(
                "Scan matched %d frames for %d samples; keeping the first %d",
                len(samples),
                n,
                n,
            )
        return samples[:n], elapsed


class TextAcquisition:
    """Reads one newline-terminated integer per sample."""

    mode = AcquisitionMode.TEXT

    def __init__(self, line_timeout_ms: int = 1000, line_max_length: int = 32):
        self.line_timeout_ms = line_timeout_ms
        self.line_max_length = line_max_length
        self.decoder = TextDecoder()

    def acquire(self, transport: ByteTransport, n: int) -> Tuple[List[int], float]:
        self.decoder.reset()
        samples: List[int] = []
        start = time.perf_counter()
        transport.flush_input()
        for _ in range(n):
            line = transport.read_line_until(b"\n", self.line_max_length, self.line_timeout_ms)
            samples.append(self.decoder.decode(line))
        elapsed = time.perf_counter() - start
        return samples, elapsed

    @property
    def soft_failures(self) -> int:
        return self.decoder.soft_failures


def make_strategy(
    mode: AcquisitionMode | str,
    *,
    idle_timeout_s: Optional[float] = 5.0,
    line_timeout_ms: int = 1000,
    line_max_length: int = 32,
    cancel: Optional[threading.Event] = None,
    raw_callback: Optional[RawCallback] = None,
) -> BinaryAcquisition | TextAcquisition:
    if AcquisitionMode(mode) is AcquisitionMode.BINARY:
        return BinaryAcquisition(idle_timeout_s, cancel=cancel, raw_callback=raw_callback)
    return TextAcquisition(line_timeout_ms, line_max_length)


def acquire(
    transport: ByteTransport, n: int, mode: AcquisitionMode | str, **options
) -> Tuple[List[int], float]:
    return make_strategy(mode, **options).acquire(transport, n)


def run_acquisition(
    transport: ByteTransport,
    sample_count: int,
    mode: AcquisitionMode | str,
    **options,
) -> MeasurementResult:
    """Acquire *sample_count* samples and wrap them with timing information."""

    if sample_count < 1:
        raise ValueError("sample_count must be at least 1")
    strategy = make_strategy(mode, **options)
    samples, elapsed = strategy.acquire(transport, sample_count)
    if isinstance(strategy, TextAcquisition):
        soft_failures = strategy.soft_failures
        frames_found = 0
        if soft_failures:
            logger.warning(
                "%d of %d lines had no integer and were recorded as 0",
                soft_failures,
                sample_count,
            )
    else:
        soft_failures = 0
        frames_found = strategy.frames_found
    result = MeasurementResult(
        samples=tuple(samples),
        elapsed_s=elapsed,
        mode=strategy.mode,
        soft_failures=soft_failures,
        frames_found=frames_found,
    )
    logger.info(
        "Acquired %d %s samples in %.6fs (%.1f SPS)",
        result.sample_count,
        result.mode.value,
        result.elapsed_s,
        result.throughput_sps,
    )
    return result
