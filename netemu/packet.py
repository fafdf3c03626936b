"""Messages, packets and the checksum shared by the transport entities."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import IntEnum

PAYLOAD_SIZE = 20
NOT_IN_USE = -1


class Entity(IntEnum):
    """One of the two endpoints of the emulated link."""

    A = 0
    B = 1

    def other(self) -> "Entity":
        """Return the entity at the opposite end of the link."""
        return Entity.B if self is Entity.A else Entity.A


def _validated_payload(data: bytes) -> bytes:
    data = bytes(data)
    if len(data) != PAYLOAD_SIZE:
        raise ValueError(f"payload must be exactly {PAYLOAD_SIZE} bytes, got {len(data)}")
    return data


@dataclass(frozen=True)
class Message:
    """A unit of application data handed from layer 5 to layer 4."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _validated_payload(self.data))


@dataclass(frozen=True)
class Packet:
    """A unit handed from layer 4 to layer 3."""

    seqnum: int
    acknum: int
    checksum: int
    payload: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", _validated_payload(self.payload))

    @classmethod
    def build(cls, seqnum: int, acknum: int, payload: bytes) -> "Packet":
        """Create a packet whose checksum matches its contents."""
        draft = cls(seqnum, acknum, 0, payload)
        return dataclasses.replace(draft, checksum=compute_checksum(draft))


def _signed(byte: int) -> int:
    return byte - 256 if byte > 127 else byte


def compute_checksum(packet: Packet) -> int:
    """Sum of sequence number, acknowledgement number and payload characters."""
    return packet.seqnum + packet.acknum + sum(_signed(b) for b in packet.payload)


def is_corrupted(packet: Packet) -> bool:
    """True when the stored checksum does not match the packet's contents."""
    return packet.checksum != compute_checksum(packet)