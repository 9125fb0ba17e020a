import re

from eth_hash.auto import keccak
from eth_utils import is_hex, to_bytes
from sign_core import u256, i256, addr, eip712_digest, TypedDataError

# EIP712Domain fields in canonical order; only those present in the domain are typed
DOMAIN_FIELDS = [
    ("name", "string"),
    ("version", "string"),
    ("chainId", "uint256"),
    ("verifyingContract", "address"),
    ("salt", "bytes32"),
]

ARRAY_RE = re.compile(r"^(.+)\[(\d*)\]$")
INT_RE = re.compile(r"^(u?)int(\d*)$")
BYTES_RE = re.compile(r"^bytes(\d+)$")


def domain_types(domain: dict) -> list:
    unknown = set(domain) - {name for name, _ in DOMAIN_FIELDS}
    if unknown:
        raise TypedDataError(f"unknown domain fields: {sorted(unknown)}")
    return [{"name": name, "type": typ} for name, typ in DOMAIN_FIELDS if name in domain]

def _base_type(typ: str) -> str:
    while True:
        m = ARRAY_RE.match(typ)
        if not m:
            return typ
        typ = m.group(1)

def _dependencies(primary_type: str, types: dict, found: set) -> set:
    if primary_type in found or primary_type not in types:
        return found
    found.add(primary_type)
    for field in types[primary_type]:
        _dependencies(_base_type(field["type"]), types, found)
    return found

def encode_type(primary_type: str, types: dict) -> str:
    """
    Primary type first, then every referenced struct type sorted by name:
    Claim(address recipient,bool status,uint256 nonce)
    """
    if primary_type not in types:
        raise TypedDataError(f"unknown type {primary_type!r}")
    deps = _dependencies(primary_type, types, set())
    deps.discard(primary_type)
    result = ""
    for name in [primary_type] + sorted(deps):
        fields = ",".join(f"{f['type']} {f['name']}" for f in types[name])
        result += f"{name}({fields})"
    return result

def type_hash(primary_type: str, types: dict) -> bytes:
    return keccak(encode_type(primary_type, types).encode("utf-8"))

def _to_bytes(value) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str) and is_hex(value):
        return to_bytes(hexstr=value)
    raise TypedDataError(f"expected bytes or hex string, got {value!r}")

def _to_int(value) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError as e:
            raise TypedDataError(f"not an integer: {value!r}") from e
    raise TypedDataError(f"not an integer: {value!r}")

def encode_field(typ: str, value, types: dict) -> bytes:
    """
    Encodes one member to its 32-byte encodedData slot.
    Structs and arrays are hashed, string/bytes are keccak'd, atomics are padded.
    """
    if typ in types:
        return hash_struct(typ, value, types)

    m = ARRAY_RE.match(typ)
    if m:
        item_type, length = m.group(1), m.group(2)
        if not isinstance(value, (list, tuple)):
            raise TypedDataError(f"{typ} expects a list, got {type(value).__name__}")
        if length and len(value) != int(length):
            raise TypedDataError(f"{typ} expects {length} items, got {len(value)}")
        return keccak(b"".join(encode_field(item_type, item, types) for item in value))

    if typ == "string":
        if not isinstance(value, str):
            raise TypedDataError(f"string expects str, got {type(value).__name__}")
        return keccak(value.encode("utf-8"))
    if typ == "bytes":
        return keccak(_to_bytes(value))
    if typ == "address":
        return addr(value)
    if typ == "bool":
        return u256(1 if value else 0)

    m = INT_RE.match(typ)
    if m:
        bits = int(m.group(2) or 256)
        if bits % 8 or not 8 <= bits <= 256:
            raise TypedDataError(f"invalid integer type {typ}")
        n = _to_int(value)
        if m.group(1):
            if n < 0 or n >= 2 ** bits:
                raise TypedDataError(f"value {n} out of range for {typ}")
            return u256(n)
        if n < -(2 ** (bits - 1)) or n >= 2 ** (bits - 1):
            raise TypedDataError(f"value {n} out of range for {typ}")
        return i256(n)

    m = BYTES_RE.match(typ)
    if m:
        size = int(m.group(1))
        raw = _to_bytes(value)
        if not 1 <= size <= 32 or len(raw) != size:
            raise TypedDataError(f"{typ} expects {size} bytes, got {len(raw)}")
        # bytesN is right-padded
        return raw + b"\x00" * (32 - size)

    raise TypedDataError(f"unsupported type {typ!r}")

def encode_data(primary_type: str, value: dict, types: dict) -> bytes:
    if not isinstance(value, dict):
        raise TypedDataError(f"{primary_type} expects a mapping, got {type(value).__name__}")
    encoded = type_hash(primary_type, types)
    for field in types[primary_type]:
        if field["name"] not in value:
            raise TypedDataError(f"{primary_type} is missing field {field['name']!r}")
        encoded += encode_field(field["type"], value[field["name"]], types)
    return encoded

def hash_struct(primary_type: str, value: dict, types: dict) -> bytes:
    return keccak(encode_data(primary_type, value, types))

def domain_separator(domain: dict) -> bytes:
    """
    Computes the EIP-712 Domain Separator.
    """
    types = {"EIP712Domain": domain_types(domain)}
    return hash_struct("EIP712Domain", domain, types)

def typed_data_digest(domain: dict, types: dict, primary_type: str, value: dict) -> bytes:
    if "EIP712Domain" in types:
        types = {k: v for k, v in types.items() if k != "EIP712Domain"}
    return eip712_digest(domain_separator(domain), hash_struct(primary_type, value, types))
