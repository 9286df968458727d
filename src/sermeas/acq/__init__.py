"""
Fixed-size batch acquisition from a microcontroller over a serial link.

The subpackage exposes configuration models, the frame and text decoders,
byte transports and the acquisition loop used by the command line tool.
"""

from .config import AcquisitionConfig, SerialConfig, TimingConfig, load_config
from .frames import TextDecoder, decode_frames, decode_line, parse_line, recombine_bytes
from .processing import VoltageSeries, convert_to_voltage, to_voltage
from .runner import (
    AcquisitionCancelled,
    AcquisitionError,
    AcquisitionMode,
    AcquisitionTimeout,
    BinaryAcquisition,
    MeasurementResult,
    ShortfallError,
    TextAcquisition,
    acquire,
    run_acquisition,
)
from .transport import (
    ByteTransport,
    SerialSettings,
    SerialTransport,
    StreamTransport,
    TransportError,
    open_transport,
)

__all__ = [
    "AcquisitionConfig",
    "SerialConfig",
    "TimingConfig",
    "load_config",
    "TextDecoder",
    "decode_frames",
    "decode_line",
    "parse_line",
    "recombine_bytes",
    "VoltageSeries",
    "convert_to_voltage",
    "to_voltage",
    "AcquisitionCancelled",
    "AcquisitionError",
    "AcquisitionMode",
    "AcquisitionTimeout",
    "BinaryAcquisition",
    "MeasurementResult",
    "ShortfallError",
    "TextAcquisition",
    "acquire",
    "run_acquisition",
    "ByteTransport",
    "SerialSettings",
    "SerialTransport",
    "StreamTransport",
    "TransportError",
    "open_transport",
]
