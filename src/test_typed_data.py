import pytest
from eth_account.messages import encode_typed_data
from eth_hash.auto import keccak
from sign_core import TypedDataError
from typed_data import (
    domain_separator,
    domain_types,
    encode_field,
    encode_type,
    hash_struct,
    type_hash,
    typed_data_digest,
)

DOMAIN = {
    "name": "SplitWithLockup",
    "version": "1",
    "chainId": 31337,
    "verifyingContract": "0x5615dEB798BB3E4dFa0139dFa1b3D433Cc23b72f",
}

CLAIM_TYPES = {
    "Claim": [
        {"name": "recipient", "type": "address"},
        {"name": "status", "type": "bool"},
        {"name": "nonce", "type": "uint256"},
    ],
}

CLAIM = {
    "recipient": "0x9d8A62f656a8d1615C1294fd71e9CFb3E4855A4F",
    "status": True,
    "nonce": 0,
}

# EIP-712 reference example (Mail / Person)
MAIL_TYPES = {
    "Person": [
        {"name": "name", "type": "string"},
        {"name": "wallet", "type": "address"},
    ],
    "Mail": [
        {"name": "from", "type": "Person"},
        {"name": "to", "type": "Person"},
        {"name": "contents", "type": "string"},
    ],
}

MAIL_DOMAIN = {
    "name": "Ether Mail",
    "version": "1",
    "chainId": 1,
    "verifyingContract": "0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC",
}

MAIL = {
    "from": {"name": "Cow", "wallet": "0xCD2a3d9F938E13CD947Ec05AbC7FE734Df8DD826"},
    "to": {"name": "Bob", "wallet": "0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB"},
    "contents": "Hello, Bob!",
}


def test_claim_type_string():
    assert encode_type("Claim", CLAIM_TYPES) == "Claim(address recipient,bool status,uint256 nonce)"
    assert type_hash("Claim", CLAIM_TYPES) == keccak(b"Claim(address recipient,bool status,uint256 nonce)")


def test_nested_type_string_sorts_dependencies():
    assert encode_type("Mail", MAIL_TYPES) == (
        "Mail(Person from,Person to,string contents)Person(string name,address wallet)"
    )


def test_mail_reference_vectors():
    assert domain_separator(MAIL_DOMAIN).hex() == (
        "f2cee375fa42b42143804025fc449deafd50cc031ca257e0b194a650a912090f"
    )
    assert hash_struct("Mail", MAIL, MAIL_TYPES).hex() == (
        "c52c0ee5d84264471806290a3f2c4cecfc5490626bf912d01f240d7a274b371e"
    )
    assert typed_data_digest(MAIL_DOMAIN, MAIL_TYPES, "Mail", MAIL).hex() == (
        "be609aee343fb3c4b28e1df9e632fca64fcfaede20f02e86244efddf30957bd2"
    )


def test_claim_matches_eth_account():
    signable = encode_typed_data(DOMAIN, CLAIM_TYPES, CLAIM)
    assert bytes(signable.header) == domain_separator(DOMAIN)
    assert bytes(signable.body) == hash_struct("Claim", CLAIM, CLAIM_TYPES)


def test_domain_types_follow_canonical_order():
    partial = {"chainId": 1, "name": "x"}
    assert [f["name"] for f in domain_types(partial)] == ["name", "chainId"]
    with pytest.raises(TypedDataError):
        domain_types({"name": "x", "owner": "y"})


def test_domain_field_changes_separator():
    base = domain_separator(DOMAIN)
    for key, changed in [("chainId", 1), ("version", "2"), ("name", "Other"),
                         ("verifyingContract", "0x" + "11" * 20)]:
        assert domain_separator({**DOMAIN, key: changed}) != base


def test_field_order_changes_hash():
    reordered = {"Claim": [CLAIM_TYPES["Claim"][1], CLAIM_TYPES["Claim"][0], CLAIM_TYPES["Claim"][2]]}
    assert hash_struct("Claim", CLAIM, reordered) != hash_struct("Claim", CLAIM, CLAIM_TYPES)


def test_atomic_encodings():
    assert encode_field("bool", False, {}) == b"\x00" * 32
    assert encode_field("int8", -1, {}) == b"\xff" * 32
    assert encode_field("uint8", "0x10", {}) == b"\x00" * 31 + b"\x10"
    assert encode_field("bytes4", "0xdeadbeef", {}) == bytes.fromhex("deadbeef") + b"\x00" * 28
    assert encode_field("bytes", b"abc", {}) == keccak(b"abc")
    assert encode_field("uint256[]", [1, 2], {}) == keccak(
        (1).to_bytes(32, "big") + (2).to_bytes(32, "big")
    )


@pytest.mark.parametrize("typ,value", [
    ("uint8", 256),
    ("uint256", -1),
    ("int8", 128),
    ("bytes4", "0xdead"),
    ("address", "0x1234"),
    ("address", "0x9D8A62f656a8d1615C1294fd71e9CFb3E4855A4F"),
    ("string", 5),
    ("uint256[2]", [1]),
    ("Unknown", {}),
])
def test_bad_values(typ, value):
    with pytest.raises(TypedDataError):
        encode_field(typ, value, {})


def test_missing_field():
    with pytest.raises(TypedDataError):
        hash_struct("Claim", {"recipient": CLAIM["recipient"], "status": True}, CLAIM_TYPES)


def test_salt_domain_matches_eth_account():
    domain = {**DOMAIN, "salt": "0x" + "ab" * 32}
    assert [f["name"] for f in domain_types(domain)][-1] == "salt"

    signable = encode_typed_data(domain, CLAIM_TYPES, CLAIM)
    assert bytes(signable.header) == domain_separator(domain)
    assert domain_separator(domain) != domain_separator(DOMAIN)


def test_struct_array_matches_eth_account():
    types = {
        "Person": MAIL_TYPES["Person"],
        "Group": [
            {"name": "title", "type": "string"},
            {"name": "members", "type": "Person[]"},
        ],
    }
    group = {"title": "Herd", "members": [MAIL["from"], MAIL["to"]]}

    assert encode_type("Group", types) == (
        "Group(string title,Person[] members)Person(string name,address wallet)"
    )
    signable = encode_typed_data(MAIL_DOMAIN, types, group)
    assert bytes(signable.body) == hash_struct("Group", group, types)
