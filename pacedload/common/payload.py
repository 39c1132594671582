"""Payload provider.

The payload is decoded exactly once, before any session starts, and then
shared by reference with every client thread. bytes is immutable so no
synchronization is needed for the sharing.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Union

import structlog

from .errors import PayloadDecodeError

logger = structlog.get_logger("payload")


# Reference card authorisation message replayed on every tick.
DEFAULT_PAYLOAD_HEX = (
    "011630313030767b44012861b00a31363533393536333030393939303030303930303030"
    "303030303030303030303135303030303030303030303135303030393330313333393032"
    "363130303030303030313236363930383339303230393330303933303039323935383132"
    "39303030363939393638313332353339353633303039393930303030393d323531303230"
    "313030303030363934303830303030313030303135462d353831322d43414e2020202020"
    "454154494e4720504c414345532c205245535441555220544f524f4e544f202020202020"
    "2043414e303037523830303254563132343132344069bef5f11420613032313030303030"
    "303030303038303031323439303231303030394d43534356304a5246"
)


@dataclass(frozen=True)
class Payload:
    """Immutable message buffer written on every tick."""

    data: bytes

    def __len__(self) -> int:
        return len(self.data)

    @classmethod
    def from_hex(cls, text: str) -> "Payload":
        """Decode a hexadecimal string.

        Whitespace is ignored and a leading 0x is accepted. Raises
        PayloadDecodeError on empty or malformed input.
        """
        cleaned = "".join(text.split())
        if cleaned[:2].lower() == "0x":
            cleaned = cleaned[2:]
        if not cleaned:
            raise PayloadDecodeError("Payload hex string is empty")

        try:
            data = bytes.fromhex(cleaned)
        except ValueError as e:
            raise PayloadDecodeError(f"Payload is not valid hex: {e}") from e

        logger.debug("Payload decoded", size_bytes=len(data))
        return cls(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Payload":
        """Read raw payload bytes from a file."""
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise PayloadDecodeError(f"Cannot read payload file {path}: {e}") from e

        if not data:
            raise PayloadDecodeError(f"Payload file {path} is empty")

        logger.debug("Payload loaded", path=str(path), size_bytes=len(data))
        return cls(data)
