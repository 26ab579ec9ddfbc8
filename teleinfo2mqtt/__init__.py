"""teleinfo2mqtt — décodage TIC historique (Teleinfo) et publication MQTT."""

from teleinfo2mqtt.errors import (
    ChecksumError, DecodeError, EncodingError, MissingFieldError,
    TeleinfoError, TransportEnded,
)
from teleinfo2mqtt.framing import (
    DelimitedFrameAssembler, FrameAssembler, LabelSyncFrameAssembler, make_assembler,
)
from teleinfo2mqtt.pipeline import decode, decode_frame
from teleinfo2mqtt.reading import Reading
from teleinfo2mqtt.tic_parser import parse_frame

__version__ = "0.3.0"
