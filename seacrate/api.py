"""HTTP API serving secrets and the unseal process."""

from __future__ import annotations

import base64
import binascii
import dataclasses
import threading
from functools import wraps

from flask import Flask, jsonify, request

from seacrate import hashing, shamir
from seacrate.database import DatabaseEngine
from seacrate.encryption import EncryptionEngine, EncryptionError
from seacrate.errors import (
    OverridingFolderError,
    OverridingSecretError,
    SecretDuplicateKeyError,
    SecretNotFoundError,
)
from seacrate.models import ErrorResponse, MessageResponse

ROOT_PATH = "/api/v1"

SEALED_MESSAGE = "Seacrate is currently sealed. This operation is not permitted."


class ApiError(RuntimeError):
    """An unexpected failure reported to the client as a server error."""


def _reply(payload, status: int = 200):
    return jsonify(payload), status


def _decode_part(part: str) -> bytes:
    try:
        return base64.b64decode(part, validate=True)
    except (binascii.Error, ValueError):
        return b""


def create_app(
    encryption_engine: EncryptionEngine, database_engine: DatabaseEngine
) -> Flask:
    """Build the web application serving the given engines."""
    app = Flask(__name__)
    submitted_parts: list[str] = []
    unseal_lock = threading.Lock()

    @app.errorhandler(Exception)
    def handle_error(err):
        return _reply(
            ErrorResponse(error="Internal Server Error", details=str(err)).to_dict(),
            500,
        )

    def requires_unsealed(view):
        @wraps(view)
        def guarded(*args, **kwargs):
            if encryption_engine.sealed:
                return _reply({"error": SEALED_MESSAGE}, 403)
            return view(*args, **kwargs)

        return guarded

    # System

    @app.get(f"{ROOT_PATH}/system/seal")
    def get_seal_status():
        return _reply({"status": encryption_engine.sealed})

    def read_meta(key: str) -> str:
        try:
            return database_engine.get_meta(key).value
        except LookupError as exc:
            raise ApiError(f"Could not get meta `{key}` from database.") from exc

    def unseal(parts: list[str]):
        try:
            key = shamir.combine([_decode_part(part) for part in parts])
        except shamir.ShamirError as exc:
            raise ApiError(
                f"Could not combine keys using the Shamir algorithm : {exc}"
            ) from exc

        stored_hash = read_meta("decryptionKeyHash").split("$")
        try:
            salt = bytes.fromhex(stored_hash[0])
        except ValueError as exc:
            raise ApiError(f"Could not decode salt : {exc}") from exc
        try:
            digest = bytes.fromhex(stored_hash[1]) if len(stored_hash) > 1 else b""
        except ValueError as exc:
            raise ApiError(f"Could not decode hash : {exc}") from exc

        if not hashing.compare(key, digest, salt):
            return _reply(
                ErrorResponse(
                    error="Wrong Key",
                    details="The key created from shards is not valid.",
                ).to_dict(),
                400,
            )

        try:
            encrypted_master_key = bytes.fromhex(read_meta("masterKey"))
        except ValueError as exc:
            raise ApiError("Could not decode master key.") from exc

        encryption_engine.set_key(key)
        try:
            master_key = encryption_engine.decrypt_data(encrypted_master_key)
        except EncryptionError as exc:
            encryption_engine.sealed = True
            raise ApiError("Could not decrypt master key.") from exc
        encryption_engine.set_key(master_key)
        encryption_engine.sealed = False

        return _reply(
            MessageResponse(
                details="Enough parts have been provided to trigger the threshold. "
                "Seacrate is now unsealed !"
            ).to_dict()
        )

    @app.post(f"{ROOT_PATH}/system/seal")
    def submit_unseal_part():
        body = request.get_json(silent=True)
        if not isinstance(body, dict) or not isinstance(body.get("part"), str):
            return _reply(
                ErrorResponse(
                    error="Internal Server Error",
                    details="Error during validation : "
                    "body must be a JSON object with a string field 'part'",
                ).to_dict(),
                500,
            )

        if not encryption_engine.sealed:
            return _reply(
                ErrorResponse(
                    error="System is already unsealed.",
                    details="Seacrate is currently unsealed, but you're trying "
                    "to unseal it, this is not permitted.",
                ).to_dict(),
                400,
            )

        try:
            threshold_text = database_engine.get_meta("thresholdCount").value
        except LookupError as exc:
            raise ApiError(
                "could not get meta `thresholdCount` from database."
            ) from exc
        try:
            threshold = int(threshold_text)
        except ValueError as exc:
            raise ApiError(
                "could not get convert `thresholdCount` from string to int"
            ) from exc

        with unseal_lock:
            submitted_parts.append(body["part"])
            if len(submitted_parts) >= threshold:
                parts = list(submitted_parts)
                submitted_parts.clear()
                return unseal(parts)

        return _reply(
            MessageResponse(
                details="Your key has been added to queue for unseal process. "
                "Threshold is still not hit."
            ).to_dict()
        )

    # Secrets

    def create_secret(key: str):
        body = request.get_json(silent=True)
        if not isinstance(body, dict) or not isinstance(body.get("value"), str):
            return _reply(
                ErrorResponse(
                    error="Body invalid",
                    details="body must be a JSON object with a string field 'value'",
                ).to_dict(),
                400,
            )

        try:
            encrypted = encryption_engine.encrypt_data(body["value"].encode("utf-8"))
        except EncryptionError as exc:
            raise ApiError("An error happened during encryption of the data.") from exc

        try:
            database_engine.create_secret(key, encrypted.hex())
        except (
            SecretDuplicateKeyError,
            OverridingFolderError,
            OverridingSecretError,
        ) as exc:
            return _reply(
                ErrorResponse(
                    error="Could not create secret", details=str(exc)
                ).to_dict(),
                400,
            )
        except Exception as exc:
            raise ApiError("An error happened during creation of the secret") from exc

        return _reply(
            MessageResponse(details="The secret was successfully created").to_dict()
        )

    def get_secret(key: str):
        try:
            result = database_engine.get_secret(key)
        except SecretNotFoundError as exc:
            return _reply(
                ErrorResponse(error="Secret not found", details=str(exc)).to_dict(),
                404,
            )
        except Exception as exc:
            raise ApiError(
                "An error happened while trying to get the secret."
            ) from exc

        if isinstance(result, list):
            return _reply(
                {"type": "folder", "content": [entry.to_dict() for entry in result]}
            )

        try:
            encrypted = bytes.fromhex(result.value)
        except ValueError as exc:
            raise ApiError("An error happened while decoding hex to bytes.") from exc
        try:
            decrypted = encryption_engine.decrypt_data(encrypted)
        except EncryptionError as exc:
            raise ApiError("An error happened during decryption of the data.") from exc

        revealed = dataclasses.replace(
            result, value=decrypted.decode("utf-8", errors="replace")
        )
        return _reply({"type": "secret", "secret": revealed.to_dict()})

    def delete_secret(key: str):
        try:
            database_engine.delete_secret(key)
        except SecretNotFoundError as exc:
            return _reply(
                ErrorResponse(error="Secret not found", details=str(exc)).to_dict(),
                404,
            )
        except Exception as exc:
            raise ApiError(
                "An error happened during the deletion of the secret."
            ) from exc
        return _reply(
            MessageResponse(details="The secret was successfully deleted").to_dict()
        )

    handlers = {"GET": get_secret, "POST": create_secret, "DELETE": delete_secret}

    @app.route(
        f"{ROOT_PATH}/secrets/",
        defaults={"path": ""},
        methods=list(handlers),
        strict_slashes=False,
    )
    @app.route(f"{ROOT_PATH}/secrets/<path:path>", methods=list(handlers))
    @requires_unsealed
    def secrets_endpoint(path: str):
        return handlers[request.method]("/" + path)

    return app