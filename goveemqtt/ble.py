"""Encoding and decoding of Govee BLE-style command packets."""

from __future__ import annotations

import base64
import binascii
import enum
import sys
import threading
from dataclasses import dataclass, fields
from typing import Any, Iterable, Union

PACKET_BODY_LEN = 19


class PacketDecodeError(ValueError):
    """The bytes do not match the layout of a packet."""


class CodecNotFoundError(LookupError):
    """No codec is known for a packet type on a given SKU."""


@dataclass(frozen=True)
class GenericPacket:
    """Raw bytes that no known codec could decode."""

    data: bytes

    def __repr__(self) -> str:
        return "GenericPacket([" + ", ".join(f"{b:02X}" for b in self.data) + "])"


@dataclass(frozen=True)
class TargetHumidity:
    """Target humidity as sent on the wire: the percentage offset by 128."""

    raw: int = 0

    def as_percent(self) -> int:
        return self.raw & 0x7F

    @classmethod
    def from_percent(cls, percent: int) -> "TargetHumidity":
        raw = percent + 128
        if not 0 <= raw <= 0xFF:
            raise ValueError(f"humidity percent {percent} out of range")
        return cls(raw)

    def __int__(self) -> int:
        return self.raw


@dataclass
class SetHumidifierMode:
    mode: int = 0
    param: int = 0


@dataclass
class NotifyHumidifierMode:
    mode: int = 0
    param: int = 0


@dataclass
class HumidifierAutoMode:
    target_humidity: TargetHumidity = TargetHumidity()


@dataclass
class SetHumidifierNightlightParams:
    on: bool = False
    r: int = 0
    g: int = 0
    b: int = 0
    brightness: int = 0


@dataclass
class NotifyHumidifierNightlightParams:
    on: bool = False
    r: int = 0
    g: int = 0
    b: int = 0
    brightness: int = 0

    def into_set(self) -> SetHumidifierNightlightParams:
        return SetHumidifierNightlightParams(
            on=self.on, r=self.r, g=self.g, b=self.b, brightness=self.brightness
        )


@dataclass
class SetSceneCode:
    code: int = 0


@dataclass
class SetDevicePower:
    on: bool = False


GoveeBlePacket = Union[
    GenericPacket,
    SetSceneCode,
    SetDevicePower,
    SetHumidifierNightlightParams,
    NotifyHumidifierMode,
    SetHumidifierMode,
    HumidifierAutoMode,
    NotifyHumidifierNightlightParams,
]


class Param(enum.Enum):
    U8 = "u8"
    U16 = "u16"
    BOOL = "bool"
    HUMIDITY = "humidity"

    def encode(self, value: Any) -> bytes:
        if self is Param.BOOL:
            return bytes([1 if value else 0])
        if self is Param.HUMIDITY:
            return bytes([int(value)])
        if self is Param.U16:
            if not 0 <= value <= 0xFFFF:
                raise ValueError(f"{value} does not fit in 16 bits")
            return bytes([value & 0xFF, value >> 8])
        return bytes([value])

    def decode(self, data: bytes) -> tuple[Any, bytes]:
        width = 2 if self is Param.U16 else 1
        if len(data) < width:
            raise PacketDecodeError("EOF")
        if self is Param.U16:
            return data[0] | (data[1] << 8), data[2:]
        byte = data[0]
        if self is Param.BOOL:
            return byte != 0, data[1:]
        if self is Param.HUMIDITY:
            return TargetHumidity(byte), data[1:]
        return byte, data[1:]


LayoutItem = Union[int, tuple[str, Param]]


def calculate_checksum(data: Iterable[int]) -> int:
    """XOR of all bytes."""
    checksum = 0
    for b in data:
        checksum ^= b
    return checksum


def finish(data: Iterable[int]) -> bytes:
    """Pad (or cut) the body to 19 bytes and append the checksum."""
    body = bytes(data)
    checksum = calculate_checksum(body)
    body = body[:PACKET_BODY_LEN].ljust(PACKET_BODY_LEN, b"\x00")
    return body + bytes([checksum])


class PacketCodec:
    """Encoder and decoder for one packet type, described by a byte layout."""

    def __init__(
        self,
        supported_skus: Iterable[str],
        packet_type: type,
        layout: Iterable[LayoutItem],
    ) -> None:
        self.supported_skus = tuple(supported_skus)
        self.packet_type = packet_type
        self.layout = tuple(layout)

    def encode(self, value: Any) -> bytes:
        if type(value) is not self.packet_type:
            raise TypeError(
                f"cannot encode {type(value).__name__} with codec for "
                f"{self.packet_type.__name__}"
            )
        out = bytearray()
        for item in self.layout:
            if isinstance(item, int):
                out.append(item)
            else:
                name, kind = item
                out += kind.encode(getattr(value, name))
        return finish(out)

    def decode(self, data: bytes) -> Any:
        remaining = bytes(data[: max(len(data) - 1, 0)])
        values: dict[str, Any] = {}
        for item in self.layout:
            if isinstance(item, int):
                got = remaining[0] if remaining else None
                if got != item:
                    raise PacketDecodeError(f"expected {item} but got {got!r}")
                remaining = remaining[1:]
            else:
                name, kind = item
                values[name], remaining = kind.decode(remaining)
        if any(remaining):
            raise PacketDecodeError("trailing bytes are not zero")
        return self.packet_type(**values)


def _default_codecs() -> list[PacketCodec]:
    u8, u16, flag = Param.U8, Param.U16, Param.BOOL
    nightlight = (("on", flag), ("brightness", u8), ("r", u8), ("g", u8), ("b", u8))
    return [
        PacketCodec(["H7160"], SetHumidifierMode, (0x33, 0x05, ("mode", u8), ("param", u8))),
        PacketCodec(
            ["H7160"], NotifyHumidifierMode, (0xAA, 0x05, 0x00, ("mode", u8), ("param", u8))
        ),
        PacketCodec(
            ["H7160"],
            HumidifierAutoMode,
            (0xAA, 0x05, 0x03, ("target_humidity", Param.HUMIDITY)),
        ),
        PacketCodec(["H7160"], NotifyHumidifierNightlightParams, (0xAA, 0x1B, *nightlight)),
        PacketCodec(["H7160"], SetHumidifierNightlightParams, (0x33, 0x1B, *nightlight)),
        PacketCodec(["Generic:Light"], SetSceneCode, (0x33, 0x05, 0x04, ("code", u16))),
        PacketCodec(["Generic:Light"], SetDevicePower, (0x33, 0x01, ("on", flag))),
    ]


class PacketManager:
    """Selects the codecs that apply to a SKU."""

    def __init__(self, codecs: Iterable[PacketCodec] | None = None) -> None:
        self._all_codecs = list(_default_codecs() if codecs is None else codecs)
        self._by_sku: dict[str, dict[type, PacketCodec]] = {}
        self._lock = threading.Lock()

    def _map_for_sku(self, sku: str) -> dict[type, PacketCodec]:
        with self._lock:
            found = self._by_sku.get(sku)
            if found is None:
                found = {}
                for codec in self._all_codecs:
                    if sku in codec.supported_skus:
                        if codec.packet_type in found:
                            print(
                                f"Conflicting PacketCodecs for {sku} "
                                f"{codec.packet_type.__name__}",
                                file=sys.stderr,
                            )
                        found[codec.packet_type] = codec
                self._by_sku[sku] = found
            return found

    def decode_for_sku(self, sku: str, data: bytes) -> GoveeBlePacket:
        for codec in list(self._map_for_sku(sku).values()):
            try:
                return codec.decode(data)
            except PacketDecodeError:
                continue
        return GenericPacket(bytes(data))

    def encode_for_sku(self, sku: str, value: Any) -> bytes:
        codec = self._map_for_sku(sku).get(type(value))
        if codec is None:
            raise CodecNotFoundError(
                f"sku {sku} has no codec for type {type(value).__name__}"
            )
        return codec.encode(value)


_MANAGER = PacketManager()


def decode_for_sku(sku: str, data: bytes) -> GoveeBlePacket:
    return _MANAGER.decode_for_sku(sku, data)


def encode_for_sku(sku: str, value: Any) -> bytes:
    return _MANAGER.encode_for_sku(sku, value)


@dataclass(frozen=True)
class Base64HexBytes:
    """Packet bytes as carried in base64 form over the LAN API."""

    data: bytes

    def decode_for_sku(self, sku: str) -> GoveeBlePacket:
        return _MANAGER.decode_for_sku(sku, self.data)

    @classmethod
    def encode_for_sku(cls, sku: str, value: Any) -> "Base64HexBytes":
        return cls(_MANAGER.encode_for_sku(sku, value))

    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @classmethod
    def with_bytes(cls, data: Iterable[int]) -> "Base64HexBytes":
        return cls(finish(data))

    @classmethod
    def from_base64(cls, encoded: str) -> "Base64HexBytes":
        try:
            return cls(base64.b64decode(encoded, validate=True))
        except binascii.Error as err:
            raise ValueError(f"invalid base64: {err}") from err

    def __repr__(self) -> str:
        return "Base64HexBytes([" + ", ".join(f"{b:02X}" for b in self.data) + "])"