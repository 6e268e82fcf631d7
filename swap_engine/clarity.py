"""Clarity value codec for Stacks read-only contract calls.

Covers the consensus serialization of Clarity values (what the node
expects as call arguments and returns as the call result), c32check
address coding for principals, and normalization of decoded values into
plain JSON-like dicts.
"""

import hashlib
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Tuple

C32_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

MAX_UINT128 = (1 << 128) - 1


class ClarityType(IntEnum):
    INT = 0x00
    UINT = 0x01
    BUFFER = 0x02
    BOOL_TRUE = 0x03
    BOOL_FALSE = 0x04
    PRINCIPAL_STANDARD = 0x05
    PRINCIPAL_CONTRACT = 0x06
    RESPONSE_OK = 0x07
    RESPONSE_ERR = 0x08
    OPTIONAL_NONE = 0x09
    OPTIONAL_SOME = 0x0A
    LIST = 0x0B
    TUPLE = 0x0C
    STRING_ASCII = 0x0D
    STRING_UTF8 = 0x0E


@dataclass(frozen=True)
class ClarityValue:
    """A typed Clarity value.

    ``value`` holds an int for int/uint, bytes for buffers, a bool for
    booleans, the address string for principals ("ADDR" or "ADDR.name"),
    the wrapped ClarityValue for responses and some, None for none, a
    tuple of values for lists and a name -> value dict for tuples.
    """

    type: ClarityType
    value: Any = None


def uint_cv(value: int) -> ClarityValue:
    value = int(value)
    if not 0 <= value <= MAX_UINT128:
        raise ValueError(f"uint out of range: {value}")
    return ClarityValue(ClarityType.UINT, value)


def contract_principal_cv(address: str, contract_name: str) -> ClarityValue:
    c32_address_decode(address)
    if not 0 < len(contract_name.encode("ascii")) < 256:
        raise ValueError(f"Invalid contract name: {contract_name!r}")
    return ClarityValue(ClarityType.PRINCIPAL_CONTRACT, f"{address}.{contract_name}")


def response_ok_cv(value: ClarityValue) -> ClarityValue:
    return ClarityValue(ClarityType.RESPONSE_OK, value)


def response_err_cv(value: ClarityValue) -> ClarityValue:
    return ClarityValue(ClarityType.RESPONSE_ERR, value)


def some_cv(value: ClarityValue) -> ClarityValue:
    return ClarityValue(ClarityType.OPTIONAL_SOME, value)


def tuple_cv(data: Dict[str, ClarityValue]) -> ClarityValue:
    return ClarityValue(ClarityType.TUPLE, dict(data))


def string_ascii_cv(value: str) -> ClarityValue:
    value.encode("ascii")
    return ClarityValue(ClarityType.STRING_ASCII, value)


# c32check addresses

def _c32_normalize(text: str) -> str:
    return text.upper().replace("O", "0").replace("L", "1").replace("I", "1")


def c32_encode(data: bytes) -> str:
    number = int.from_bytes(data, "big")
    chars = []
    while number:
        number, digit = divmod(number, 32)
        chars.append(C32_ALPHABET[digit])
    leading_zeros = len(data) - len(data.lstrip(b"\x00"))
    return "0" * leading_zeros + "".join(reversed(chars))


def c32_decode(text: str) -> bytes:
    text = _c32_normalize(text)
    number = 0
    for char in text:
        digit = C32_ALPHABET.find(char)
        if digit < 0:
            raise ValueError(f"Invalid c32 character: {char!r}")
        number = number * 32 + digit
    leading_zeros = len(text) - len(text.lstrip("0"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big")
    return b"\x00" * leading_zeros + body


def _checksum(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()[:4]


def c32_address(version: int, hash160: bytes) -> str:
    if not 0 <= version < 32 or len(hash160) != 20:
        raise ValueError("Invalid address version or hash length")
    payload = hash160 + _checksum(bytes([version]) + hash160)
    return "S" + C32_ALPHABET[version] + c32_encode(payload)


def c32_address_decode(address: str) -> Tuple[int, bytes]:
    """Split a Stacks address into (version, hash160), checking the checksum"""
    if len(address) < 5 or address[0] != "S":
        raise ValueError(f"Invalid Stacks address: {address!r}")
    version = C32_ALPHABET.find(_c32_normalize(address[1]))
    if version < 0:
        raise ValueError(f"Invalid Stacks address version: {address!r}")
    data = c32_decode(address[2:])
    hash160, checksum = data[:-4], data[-4:]
    if len(hash160) != 20:
        raise ValueError(f"Invalid Stacks address length: {address!r}")
    if _checksum(bytes([version]) + hash160) != checksum:
        raise ValueError(f"Invalid Stacks address checksum: {address!r}")
    return version, hash160


# Serialization

def _encode_principal(address: str) -> bytes:
    version, hash160 = c32_address_decode(address)
    return bytes([version]) + hash160


def serialize(cv: ClarityValue) -> bytes:
    prefix = bytes([cv.type])
    t = cv.type
    if t == ClarityType.INT:
        return prefix + cv.value.to_bytes(16, "big", signed=True)
    if t == ClarityType.UINT:
        return prefix + cv.value.to_bytes(16, "big")
    if t == ClarityType.BUFFER:
        return prefix + len(cv.value).to_bytes(4, "big") + cv.value
    if t in (ClarityType.BOOL_TRUE, ClarityType.BOOL_FALSE, ClarityType.OPTIONAL_NONE):
        return prefix
    if t == ClarityType.PRINCIPAL_STANDARD:
        return prefix + _encode_principal(cv.value)
    if t == ClarityType.PRINCIPAL_CONTRACT:
        address, name = cv.value.split(".", 1)
        name_bytes = name.encode("ascii")
        return prefix + _encode_principal(address) + bytes([len(name_bytes)]) + name_bytes
    if t in (ClarityType.RESPONSE_OK, ClarityType.RESPONSE_ERR, ClarityType.OPTIONAL_SOME):
        return prefix + serialize(cv.value)
    if t == ClarityType.LIST:
        return prefix + len(cv.value).to_bytes(4, "big") + b"".join(serialize(v) for v in cv.value)
    if t == ClarityType.TUPLE:
        out = prefix + len(cv.value).to_bytes(4, "big")
        # Tuple keys go on the wire in sorted order
        for key in sorted(cv.value):
            key_bytes = key.encode("ascii")
            out += bytes([len(key_bytes)]) + key_bytes + serialize(cv.value[key])
        return out
    if t in (ClarityType.STRING_ASCII, ClarityType.STRING_UTF8):
        encoded = cv.value.encode("ascii" if t == ClarityType.STRING_ASCII else "utf-8")
        return prefix + len(encoded).to_bytes(4, "big") + encoded
    raise ValueError(f"Unsupported Clarity type: {t!r}")


def serialize_hex(cv: ClarityValue) -> str:
    return "0x" + serialize(cv).hex()


class _Reader:
    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def read(self, size: int) -> bytes:
        if self.offset + size > len(self.data):
            raise ValueError("Truncated Clarity value")
        chunk = self.data[self.offset:self.offset + size]
        self.offset += size
        return chunk

    def read_int(self, size: int) -> int:
        return int.from_bytes(self.read(size), "big")


def _read_value(reader: _Reader) -> ClarityValue:
    try:
        t = ClarityType(reader.read_int(1))
    except ValueError:
        raise ValueError("Unknown Clarity type prefix") from None
    if t == ClarityType.INT:
        return ClarityValue(t, int.from_bytes(reader.read(16), "big", signed=True))
    if t == ClarityType.UINT:
        return ClarityValue(t, reader.read_int(16))
    if t == ClarityType.BUFFER:
        return ClarityValue(t, reader.read(reader.read_int(4)))
    if t == ClarityType.BOOL_TRUE:
        return ClarityValue(t, True)
    if t == ClarityType.BOOL_FALSE:
        return ClarityValue(t, False)
    if t in (ClarityType.PRINCIPAL_STANDARD, ClarityType.PRINCIPAL_CONTRACT):
        version = reader.read_int(1)
        address = c32_address(version, reader.read(20))
        if t == ClarityType.PRINCIPAL_STANDARD:
            return ClarityValue(t, address)
        name = reader.read(reader.read_int(1)).decode("ascii")
        return ClarityValue(t, f"{address}.{name}")
    if t in (ClarityType.RESPONSE_OK, ClarityType.RESPONSE_ERR, ClarityType.OPTIONAL_SOME):
        return ClarityValue(t, _read_value(reader))
    if t == ClarityType.OPTIONAL_NONE:
        return ClarityValue(t, None)
    if t == ClarityType.LIST:
        count = reader.read_int(4)
        return ClarityValue(t, tuple(_read_value(reader) for _ in range(count)))
    if t == ClarityType.TUPLE:
        data = {}
        for _ in range(reader.read_int(4)):
            key = reader.read(reader.read_int(1)).decode("ascii")
            data[key] = _read_value(reader)
        return ClarityValue(t, data)
    raw = reader.read(reader.read_int(4))
    return ClarityValue(t, raw.decode("ascii" if t == ClarityType.STRING_ASCII else "utf-8"))


def deserialize(data: bytes) -> ClarityValue:
    reader = _Reader(data)
    cv = _read_value(reader)
    if reader.offset != len(data):
        raise ValueError("Trailing bytes after Clarity value")
    return cv


def deserialize_hex(text: str) -> ClarityValue:
    if text.startswith("0x"):
        text = text[2:]
    return deserialize(bytes.fromhex(text))


# JSON normalization

_JSON_TYPE_NAMES = {
    ClarityType.INT: "int",
    ClarityType.UINT: "uint",
    ClarityType.BUFFER: "buffer",
    ClarityType.BOOL_TRUE: "bool",
    ClarityType.BOOL_FALSE: "bool",
    ClarityType.PRINCIPAL_STANDARD: "principal",
    ClarityType.PRINCIPAL_CONTRACT: "principal",
    ClarityType.RESPONSE_OK: "response",
    ClarityType.RESPONSE_ERR: "response",
    ClarityType.OPTIONAL_NONE: "optional",
    ClarityType.OPTIONAL_SOME: "optional",
    ClarityType.LIST: "list",
    ClarityType.TUPLE: "tuple",
    ClarityType.STRING_ASCII: "string-ascii",
    ClarityType.STRING_UTF8: "string-utf8",
}


def cv_to_json(cv: ClarityValue) -> Dict[str, Any]:
    """Normalize a Clarity value into nested {"type", "value"} dicts.

    Integers become decimal strings so 128-bit values survive JSON.
    Responses also carry ``success``.
    """
    t = cv.type
    out: Dict[str, Any] = {"type": _JSON_TYPE_NAMES[t]}
    if t in (ClarityType.INT, ClarityType.UINT):
        out["value"] = str(cv.value)
    elif t == ClarityType.BUFFER:
        out["value"] = "0x" + cv.value.hex()
    elif t in (ClarityType.RESPONSE_OK, ClarityType.RESPONSE_ERR):
        out["value"] = cv_to_json(cv.value)
        out["success"] = t == ClarityType.RESPONSE_OK
    elif t == ClarityType.OPTIONAL_SOME:
        out["value"] = cv_to_json(cv.value)
    elif t == ClarityType.LIST:
        out["value"] = [cv_to_json(v) for v in cv.value]
    elif t == ClarityType.TUPLE:
        out["value"] = {k: cv_to_json(v) for k, v in cv.value.items()}
    else:
        out["value"] = cv.value
    return out

