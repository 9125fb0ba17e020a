from eth_hash.auto import keccak
from eth_utils import (
    is_checksum_address,
    is_checksum_formatted_address,
    is_hex,
    to_bytes,
    to_canonical_address,
    to_checksum_address,
)
from coincurve import PrivateKey, PublicKey


class SignerError(Exception):
    """Base class for every failure raised by the claim signer."""


class InvalidKeyError(SignerError, ValueError):
    pass


class SigningError(SignerError):
    pass


class MalformedSignatureError(SignerError, ValueError):
    pass


class TypedDataError(SignerError, ValueError):
    pass


# ---------- fixed-width helpers ----------

def u256(x: int) -> bytes:
    if x < 0 or x >= 2 ** 256:
        raise TypedDataError(f"value {x} does not fit in uint256")
    return x.to_bytes(32, "big")

def i256(x: int) -> bytes:
    if x < -(2 ** 255) or x >= 2 ** 255:
        raise TypedDataError(f"value {x} does not fit in int256")
    return x.to_bytes(32, "big", signed=True)

def addr(a) -> bytes:
    # 20-byte address left-padded to 32 (EIP-712 encodedData slot)
    if isinstance(a, str) and is_checksum_formatted_address(a) and not is_checksum_address(a):
        raise TypedDataError(f"bad address checksum {a!r}")
    try:
        raw = to_canonical_address(a)
    except (TypeError, ValueError) as e:
        raise TypedDataError(f"invalid address {a!r}") from e
    return b"\x00" * 12 + raw

def b32(x: bytes) -> bytes:
    if len(x) != 32:
        raise TypedDataError(f"expected 32 bytes, got {len(x)}")
    return x

def hexstr(x: bytes) -> str:
    return "0x" + x.hex()

# ---------- EIP-712 core ----------

EIP191_PREFIX = b"\x19\x01"

def eip712_digest(domain_separator: bytes, struct_hash: bytes) -> bytes:
    return keccak(EIP191_PREFIX + b32(domain_separator) + b32(struct_hash))

# ---------- keys ----------

def parse_private_key(private_key) -> bytes:
    """
    Normalises a private key (bytes or hex string, 0x prefix optional)
    to 32 raw bytes and checks it is a valid secp256k1 scalar.
    """
    if isinstance(private_key, str):
        if not is_hex(private_key):
            raise InvalidKeyError("private key is not a hex string")
        key_bytes = to_bytes(hexstr=private_key)
    elif isinstance(private_key, (bytes, bytearray)):
        key_bytes = bytes(private_key)
    else:
        raise InvalidKeyError(f"unsupported private key type {type(private_key).__name__}")

    if len(key_bytes) != 32:
        raise InvalidKeyError(f"private key must be 32 bytes, got {len(key_bytes)}")

    try:
        PrivateKey(key_bytes)
    except ValueError as e:
        # zero or >= curve order
        raise InvalidKeyError(str(e)) from e
    return key_bytes

def public_key_to_address(pubkey_bytes: bytes) -> str:
    # uncompressed 0x04 || X || Y -> last 20 bytes of keccak(X || Y)
    return to_checksum_address(keccak(pubkey_bytes[1:])[-20:])

def derive_address(private_key) -> str:
    pk = PrivateKey(parse_private_key(private_key))
    return public_key_to_address(pk.public_key.format(compressed=False))

# ---------- deterministic secp256k1 ----------

def sign_digest(private_key, digest_32: bytes) -> bytes:
    """
    Signs a 32-byte digest and returns the 65-byte r || s || v signature,
    v being 27 + recovery id.
    """
    try:
        pk = PrivateKey(parse_private_key(private_key))
    except InvalidKeyError as e:
        raise SigningError(f"cannot sign with invalid key: {e}") from e

    if len(digest_32) != 32:
        raise SigningError(f"digest must be 32 bytes, got {len(digest_32)}")

    # coincurve uses libsecp256k1 RFC6979 deterministic nonce generation, low-s
    sig65 = pk.sign_recoverable(digest_32, hasher=None)
    return sig65[:64] + bytes([sig65[64] + 27])

def split_signature(signature):
    """
    Returns (v, r, s) for a 65-byte signature given as bytes or hex string.
    """
    if isinstance(signature, str):
        if not is_hex(signature):
            raise MalformedSignatureError("signature is not a hex string")
        signature = to_bytes(hexstr=signature)
    elif not isinstance(signature, (bytes, bytearray)):
        raise MalformedSignatureError(f"unsupported signature type {type(signature).__name__}")
    if len(signature) != 65:
        raise MalformedSignatureError(f"signature must be 65 bytes, got {len(signature)}")

    r = bytes(signature[:32])
    s = bytes(signature[32:64])
    v = signature[64]
    if v in (0, 1):
        v += 27
    if v not in (27, 28):
        raise MalformedSignatureError(f"invalid recovery byte {v}")
    return v, r, s

def join_signature(v: int, r: bytes, s: bytes) -> bytes:
    if len(r) != 32 or len(s) != 32:
        raise MalformedSignatureError("r and s must be 32 bytes each")
    if v in (0, 1):
        v += 27
    if v not in (27, 28):
        raise MalformedSignatureError(f"invalid recovery byte {v}")
    return r + s + bytes([v])

def recover_address(digest_32: bytes, signature) -> str:
    if len(digest_32) != 32:
        raise TypedDataError(f"digest must be 32 bytes, got {len(digest_32)}")
    v, r, s = split_signature(signature)
    sig65 = r + s + bytes([v - 27])
    try:
        pub = PublicKey.from_signature_and_message(sig65, digest_32, hasher=None)
    except ValueError as e:
        raise MalformedSignatureError(f"cannot recover signer: {e}") from e
    return public_key_to_address(pub.format(compressed=False))
