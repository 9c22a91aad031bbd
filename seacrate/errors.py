"""Errors raised when storing, reading or deleting secrets."""


class SeacrateError(Exception):
    """Base class for errors tied to a secret key."""

    template = "an error happened with this key ({key})"

    def __init__(self, key):
        self.key = key
        super().__init__(self.template.format(key=key))


class SecretDuplicateKeyError(SeacrateError):
    """A secret with the same key already exists in the folder."""

    template = "a secret with the same key ({key}) already exist in this folder"


class OverridingFolderError(SeacrateError):
    """Creating the secret would replace an existing folder."""

    template = "creating a secret with this key ({key}) would override a folder"


class OverridingSecretError(SeacrateError):
    """Creating the secret would place it below an existing secret."""

    template = "creating a secret with this key ({key}) would override another secret"


class SecretNotFoundError(SeacrateError):
    """Nothing is stored at the requested key."""

    template = "no secret found at this key ({key})"