import pytest

from seacrate.hashing import SALT_LENGTH, compare, generate_hash, generate_salt

SALT_HEX = "f67ba36ed692c4f41b77d6a88e46a72669e56816b1ba10b7cc0242619a67d6f0"
HASH_HEX = "b03dd3c4675694224b5f4d4884647a8465631947463b870576566b1ad0d1c5a1"


def test_generate_hash_creates_salt():
    _, salt = generate_hash(b"my_super_password", b"")
    assert len(salt) == SALT_LENGTH
    assert len(salt) != 0


@pytest.mark.parametrize(
    ("password", "expected"),
    [
        (b"my_super_password", True),
        (b"wrong!password", False),
    ],
)
def test_compare_hash(password, expected):
    salt = bytes.fromhex(SALT_HEX)
    digest = bytes.fromhex(HASH_HEX)
    assert compare(password, digest, salt) is expected


def test_generate_hash_with_known_salt():
    digest, salt = generate_hash(b"my_super_password", bytes.fromhex(SALT_HEX))
    assert salt == bytes.fromhex(SALT_HEX)
    assert digest.hex() == HASH_HEX


def test_hash_round_trip():
    digest, salt = generate_hash(b"key material")
    assert compare(b"key material", digest, salt) is True
    assert compare(b"other material", digest, salt) is False


def test_salts_differ():
    assert generate_salt(SALT_LENGTH) != generate_salt(SALT_LENGTH)
    assert len(generate_salt(16)) == 16