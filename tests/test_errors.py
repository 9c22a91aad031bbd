import pytest

from seacrate.errors import (
    OverridingFolderError,
    OverridingSecretError,
    SeacrateError,
    SecretDuplicateKeyError,
    SecretNotFoundError,
)


@pytest.mark.parametrize(
    ("error_class", "expected"),
    [
        (
            SecretDuplicateKeyError,
            "a secret with the same key (/a/b) already exist in this folder",
        ),
        (
            OverridingFolderError,
            "creating a secret with this key (/a/b) would override a folder",
        ),
        (
            OverridingSecretError,
            "creating a secret with this key (/a/b) would override another secret",
        ),
        (SecretNotFoundError, "no secret found at this key (/a/b)"),
    ],
)
def test_messages(error_class, expected):
    error = error_class("/a/b")
    assert str(error) == expected
    assert error.key == "/a/b"


@pytest.mark.parametrize(
    "error_class",
    [
        SecretDuplicateKeyError,
        OverridingFolderError,
        OverridingSecretError,
        SecretNotFoundError,
    ],
)
def test_all_errors_share_base_class(error_class):
    error = error_class("/missing")
    assert isinstance(error, SeacrateError)
    assert error.key == "/missing"
    assert str(error).endswith("(/missing)") or "(/missing)" in str(error)


def test_errors_are_distinct():
    error = OverridingFolderError("/x")
    assert str(error) == "creating a secret with this key (/x) would override a folder"
    assert not isinstance(error, OverridingSecretError)