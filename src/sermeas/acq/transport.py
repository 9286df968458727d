"""
Byte transports feeding the acquisition loop.

`SerialTransport` wraps a pyserial port, `StreamTransport` any binary file
object (stdin, a capture file, an in-memory buffer). Both satisfy the
`ByteTransport` protocol the runner depends on.
"""

from __future__ import annotations

import abc
import logging
import time
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, Protocol

import serial
import serial.tools.list_ports

logger = logging.getLogger(__name__)


class TransportError(RuntimeError):
    """The serial port could not be opened or configured."""


class ByteTransport(Protocol):
    def flush_input(self) -> None:
        ...

    def read_byte(self) -> bytes:
        """One read attempt: a single byte, or b"" when nothing arrived."""
        ...

    def read_line_until(
        self, delimiter: bytes = b"\n", max_length: int = 32, timeout_ms: int = 1000
    ) -> str:
        ...

    def close(self) -> None:
        ...


@dataclass
class SerialSettings:
    port: str
    baudrate: int = 115200
    timeout: float = 0.1
    startup_delay_ms: int = 0


class _LineReader(abc.ABC):
    """Shared `read_line_until` built on top of `read_byte`."""

    @abc.abstractmethod
    def read_byte(self) -> bytes:
        ...

    def read_line_until(
        self, delimiter: bytes = b"\n", max_length: int = 32, timeout_ms: int = 1000
    ) -> str:
        deadline = time.monotonic() + timeout_ms / 1000.0
        buf = bytearray()
        while len(buf) < max_length:
            byte = self.read_byte()
            if not byte:
                if time.monotonic() >= deadline:
                    logger.debug("Line read timed out after %d ms (%d bytes)", timeout_ms, len(buf))
                    break
                continue
            buf += byte
            if byte == delimiter:
                break
        return buf.decode("ascii", errors="replace")


class SerialTransport(_LineReader):
    def __init__(self, handle: Any, settings: SerialSettings):
        self._serial = handle
        self.settings = settings

    def flush_input(self) -> None:
        self._serial.reset_input_buffer()

    def read_byte(self) -> bytes:
        return self._serial.read(1)

    def close(self) -> None:
        try:
            self._serial.close()
        except Exception:
            logger.debug("Error while closing %s", self.settings.port, exc_info=True)

    def __enter__(self) -> "SerialTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class StreamTransport(_LineReader):
    """Transport over a readable binary stream; EOF reads as an empty read."""

    def __init__(self, handle: BinaryIO, name: str = "<stream>"):
        self._handle = handle
        self.name = name

    def flush_input(self) -> None:
        # A replayed stream has no stale device bytes to discard.
        pass

    def read_byte(self) -> bytes:
        return self._handle.read(1) or b""

    def close(self) -> None:
        pass

    def __enter__(self) -> "StreamTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def open_transport(settings: SerialSettings) -> SerialTransport:
    try:
        handle = serial.Serial(
            port=settings.port,
            baudrate=settings.baudrate,
            timeout=settings.timeout,
        )
    except (serial.SerialException, OSError, ValueError) as exc:
        raise TransportError(f"Cannot open {settings.port} at {settings.baudrate} baud: {exc}") from exc
    logger.info("Connected to %s (%d baud)", settings.port, settings.baudrate)
    if settings.startup_delay_ms > 0:
        # Boards with auto-reset reboot when the port opens.
        logger.info("Waiting %d ms for the device to start", settings.startup_delay_ms)
        time.sleep(settings.startup_delay_ms / 1000.0)
    return SerialTransport(handle, settings)


def list_ports() -> Dict[str, str]:
    return {port.device: port.description for port in serial.tools.list_ports.comports()}
