import struct
from dataclasses import dataclass, asdict, field
from typing import Mapping, Any

import msgpack

# Frames are a uint32 big-endian length followed by a msgpack map
HEADER = struct.Struct("!I")


@dataclass
class Event:
    type: str
    payload: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Mapping[str, Any]:
        return asdict(self)

    def to_frame(self) -> bytes:
        payload = msgpack.packb(self.to_dict(), use_bin_type=True)
        return HEADER.pack(len(payload)) + payload

    @classmethod
    def from_payload(cls, payload: bytes) -> "Event":
        data = msgpack.unpackb(payload, raw=False)
        return cls(**data)
