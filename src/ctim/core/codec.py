from __future__ import annotations

import re
from dataclasses import dataclass

from ctim.errors import (
    CtimError,
    MalformedCharacters,
    MalformedLength,
    OutOfRange,
    Overflow,
    TagMismatch,
    UnsupportedInputKind,
)

# Layout (64 bit, big-endian nibbles):
#   63..60  tag 0xC
#   59..32  ledger index (28 bit)
#   31..16  transaction index
#   15..0   network id
CTIM_TAG = 0xC000000000000000
CTIM_TAG_MASK = 0xF000000000000000
CTIM_TAG_BASE = 0xC0000000  # tag as seen from the high 32-bit half

MAX_LEDGER_INDEX = 0xFFFFFFF
MAX_TXN_INDEX = 0xFFFF
MAX_NETWORK_ID = 0xFFFF
MAX_U64 = 0xFFFFFFFFFFFFFFFF

CTIM_HEX_LEN = 16

_HEX_UPPER = re.compile(r"[0-9A-F]+")


@dataclass(frozen=True, slots=True)
class CtimText:
    """CTIM as 16 uppercase hex characters."""

    text: str


@dataclass(frozen=True, slots=True)
class CtimInt:
    """CTIM as an unsigned 64-bit integer."""

    value: int


CtimInput = CtimText | CtimInt


@dataclass(frozen=True, slots=True)
class CtimFields:
    """Decoded form of a CTIM."""

    ledger_index: int
    txn_index: int
    network_id: int

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.ledger_index, self.txn_index, self.network_id)

    def value(self) -> int:
        return pack(self.ledger_index, self.txn_index, self.network_id)

    def ctim(self) -> str:
        return format_ctim(self.value())


def _is_int(x: object) -> bool:
    # bool is an int subclass, but True is not a ledger index
    return isinstance(x, int) and not isinstance(x, bool)


def _check_field(name: str, x: object, limit: int) -> int:
    if not _is_int(x):
        raise UnsupportedInputKind(f"{name}: expected int, got {type(x).__name__}")
    if x < 0 or x > limit:
        raise OutOfRange(f"{name} out of range: {x} (max {limit:#x})")
    return int(x)


def as_input(ctim: object) -> CtimInput:
    """Lift a raw value (str/int) into a decode input variant."""
    if isinstance(ctim, (CtimText, CtimInt)):
        return ctim
    if isinstance(ctim, str):
        return CtimText(ctim)
    if _is_int(ctim):
        return CtimInt(int(ctim))
    raise UnsupportedInputKind(f"unsupported CTIM input: {type(ctim).__name__}")


# ---------------
# Strict helpers
# ---------------


def pack(ledger_index: int, txn_index: int, network_id: int) -> int:
    """Pack the triple into a tagged 64-bit value.

    Raises OutOfRange / UnsupportedInputKind.
    """
    lgr = _check_field("ledger_index", ledger_index, MAX_LEDGER_INDEX)
    txn = _check_field("txn_index", txn_index, MAX_TXN_INDEX)
    net = _check_field("network_id", network_id, MAX_NETWORK_ID)
    return ((CTIM_TAG_BASE + lgr) << 32) | (txn << 16) | net


def format_ctim(value: int) -> str:
    """16 uppercase hex chars, zero padded, no prefix."""
    if not _is_int(value):
        raise UnsupportedInputKind(f"expected int, got {type(value).__name__}")
    if value < 0 or value > MAX_U64:
        raise Overflow(f"value does not fit in 64 bits: {value:#x}")
    return f"{value:016X}"


def _parse_text(text: str) -> int:
    if len(text) != CTIM_HEX_LEN:
        raise MalformedLength(f"CTIM must be {CTIM_HEX_LEN} characters, got {len(text)}")
    if _HEX_UPPER.fullmatch(text) is None:
        raise MalformedCharacters(f"CTIM must be uppercase hex [0-9A-F]: {text!r}")
    return int(text, 16)


def parse(ctim: object) -> int:
    """Return the validated 64-bit CTIM value for any accepted input.

    Dispatch is on the input variant:
      - CtimText: length, charset, then base-16
      - CtimInt: 0 <= value <= 2**64-1
    then both paths check the tag nibble.
    """
    src = as_input(ctim)
    if isinstance(src, CtimText):
        if not isinstance(src.text, str):
            raise UnsupportedInputKind(f"CtimText holds {type(src.text).__name__}")
        value = _parse_text(src.text)
    else:
        # as_input only ever returns the two variants
        if not _is_int(src.value):
            raise UnsupportedInputKind(f"CtimInt holds {type(src.value).__name__}")
        value = src.value
        if value < 0 or value > MAX_U64:
            raise Overflow(f"CTIM does not fit in 64 bits: {value}")

    if (value & CTIM_TAG_MASK) != CTIM_TAG:
        raise TagMismatch(f"CTIM tag nibble must be 0xC, got {value >> 60:#x}")
    return value


def unpack(ctim: object) -> CtimFields:
    value = parse(ctim)
    return CtimFields(
        ledger_index=(value >> 32) & MAX_LEDGER_INDEX,
        txn_index=(value >> 16) & MAX_TXN_INDEX,
        network_id=value & MAX_NETWORK_ID,
    )


def explain(ctim: object) -> CtimError | None:
    """Return the error decoding ``ctim`` would hit, or None if it is valid."""
    try:
        parse(ctim)
    except CtimError as e:
        return e
    return None


def is_ctim(ctim: object) -> bool:
    return explain(ctim) is None


# ---------------
# Public API (never raises on bad input)
# ---------------


def encode(ledger_index: int, txn_index: int, network_id: int) -> str | None:
    """Encode the triple as a CTIM string, or None when a field is out of range."""
    try:
        return format_ctim(pack(ledger_index, txn_index, network_id))
    except CtimError:
        return None


def encode_value(ledger_index: int, txn_index: int, network_id: int) -> int | None:
    try:
        return pack(ledger_index, txn_index, network_id)
    except CtimError:
        return None


def decode(ctim: str | int | CtimInput) -> tuple[int, int, int] | None:
    """Decode a CTIM (string, integer or input variant) into
    (ledger_index, txn_index, network_id), or None if it is not a valid CTIM."""
    try:
        return unpack(ctim).as_tuple()
    except CtimError:
        return None


def decode_text(text: str) -> tuple[int, int, int] | None:
    if not isinstance(text, str):
        return None
    return decode(CtimText(text))


def decode_int(value: int) -> tuple[int, int, int] | None:
    if not _is_int(value):
        return None
    return decode(CtimInt(value))
