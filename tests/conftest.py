"""Shared fixtures: the reference historic-mode frame, as text and as wire bytes."""

import pytest

SAMPLE_LINES = [
    "ADCO 012345678901 E",
    "OPTARIF BASE 0",
    "ISOUSC 30 9",
    "BASE 002809718 .",
    "PTEC TH.. $",
    "IINST 002 Y",
    "IMAX 090 H",
    "PAPP 00390 -",
    "HHPHC A ,",
    "MOTDETAT 000000 B",
]


@pytest.fixture()
def sample_lines() -> list[str]:
    return list(SAMPLE_LINES)


@pytest.fixture()
def frame_text() -> str:
    """Frame text as newline-separated lines, no control bytes."""
    return "\n".join(SAMPLE_LINES)


@pytest.fixture()
def wire_text() -> str:
    """Frame text as the meter sends it between STX and ETX: LF ... CR per group."""
    return "".join(f"\n{line}\r" for line in SAMPLE_LINES)


@pytest.fixture()
def wire_frame(wire_text: str) -> bytes:
    """One complete frame on the wire, STX and ETX included."""
    return b"\x02" + wire_text.encode("ascii") + b"\x03"
