import base64
import json
from unittest import mock

import pytest
import yaml

from seacrate import hashing, shamir
from seacrate.cli import engines_from_config, initialize, main
from seacrate.config import Config, DatabaseConfiguration, EncryptionConfiguration
from seacrate.database import DatabaseEngine, MetaNotFoundError
from seacrate.encryption import AesEncryptionEngine


@pytest.fixture
def config(tmp_path):
    return Config(
        encryption=EncryptionConfiguration(algorithm="aes"),
        database=DatabaseConfiguration(database=str(tmp_path / "store.sqlite")),
    )


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(
        yaml.safe_dump(
            {
                "encryption": {"algorithm": "aes"},
                "database": {"database": str(tmp_path / "store.sqlite")},
            }
        )
    )
    return path


def test_initialize_writes_keys_file(config, tmp_path):
    output = tmp_path / "results.json"
    keys = initialize(config, 5, 3, output)
    assert len(keys) == 5
    assert json.loads(output.read_text()) == {"keys": keys}
    for key in keys:
        assert len(base64.b64decode(key)) == 32 + 1


def test_initialize_stores_meta(config, tmp_path):
    initialize(config, 4, 2, tmp_path / "results.json")
    with DatabaseEngine(config.database.database) as db:
        assert db.get_meta("initialized").value == "yes"
        assert db.get_meta("thresholdCount").value == "2"
        salt_hex, digest_hex = db.get_meta("decryptionKeyHash").value.split("$")
        assert len(bytes.fromhex(salt_hex)) == hashing.SALT_LENGTH
        assert len(bytes.fromhex(digest_hex)) == hashing.KEY_LENGTH


def test_initialize_keys_rebuild_decryption_and_master_key(config, tmp_path):
    keys = initialize(config, 5, 3, tmp_path / "results.json")
    decryption_key = shamir.combine([base64.b64decode(k) for k in keys[1:4]])
    with DatabaseEngine(config.database.database) as db:
        salt_hex, digest_hex = db.get_meta("decryptionKeyHash").value.split("$")
        encrypted_master = bytes.fromhex(db.get_meta("masterKey").value)
    assert hashing.compare(
        decryption_key, bytes.fromhex(digest_hex), bytes.fromhex(salt_hex)
    )
    engine = AesEncryptionEngine()
    engine.set_key(decryption_key)
    assert len(engine.decrypt_data(encrypted_master)) == 32


def test_initialize_invalid_threshold_stores_nothing(config, tmp_path):
    output = tmp_path / "results.json"
    with pytest.raises(shamir.ShamirError):
        initialize(config, 2, 3, output)
    assert not output.exists()
    with DatabaseEngine(config.database.database) as db:
        with pytest.raises(MetaNotFoundError):
            db.get_meta("initialized")


def test_engines_from_config_starts_sealed(config):
    database_engine, encryption_engine = engines_from_config(config)
    with database_engine:
        assert isinstance(database_engine, DatabaseEngine)
        assert isinstance(encryption_engine, AesEncryptionEngine)
        assert encryption_engine.sealed is True


def test_initialized_instance_unseals_through_api(config, tmp_path):
    from seacrate.api import create_app

    keys = initialize(config, 3, 2, tmp_path / "results.json")
    database_engine, encryption_engine = engines_from_config(config)
    with database_engine:
        client = create_app(encryption_engine, database_engine).test_client()
        first = client.post("/api/v1/system/seal", json={"part": keys[0]})
        assert first.status_code == 200
        assert encryption_engine.sealed is True
        second = client.post("/api/v1/system/seal", json={"part": keys[2]})
        assert second.status_code == 200
        assert encryption_engine.sealed is False

        created = client.post("/api/v1/secrets/app/db", json={"value": "secret"})
        assert created.status_code == 200
        fetched = client.get("/api/v1/secrets/app/db")
        assert fetched.get_json()["secret"]["value"] == "secret"


def test_main_version(capsys):
    assert main(["version"]) == 0
    assert capsys.readouterr().out.strip() == "Seacrate version 0.1.0"


def test_main_without_command_prints_help(capsys):
    assert main([]) == 0
    assert "Seacrate is an easy secret management application" in capsys.readouterr().out


def test_main_validate_accepts_valid_config(config_file):
    assert main(["--config", str(config_file), "validate"]) == 0


def test_main_validate_rejects_unknown_algorithm(tmp_path, capsys):
    path = tmp_path / "config.yml"
    path.write_text(yaml.safe_dump({"encryption": {"algorithm": "rot13"}}))
    assert main(["--config", str(path), "validate"]) == 1
    assert "oneof" in capsys.readouterr().out


def test_main_validate_missing_file(tmp_path):
    assert main(["--config", str(tmp_path / "absent.yml"), "validate"]) == 1


def test_main_init_prompts_and_writes_results(config_file, tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    answers = iter(["5", "3"])
    monkeypatch.setattr("builtins.input", lambda *args: next(answers))
    assert main(["init"]) == 0
    out = capsys.readouterr().out
    assert "How many key part do you wish to generate ?" in out
    assert "Create file `results.json`" in out
    keys = json.loads((tmp_path / "results.json").read_text())["keys"]
    assert len(keys) == 5


def test_main_init_rejects_non_numeric_answer(config_file, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    answers = iter(["five", "3"])
    monkeypatch.setattr("builtins.input", lambda *args: next(answers))
    assert main(["init"]) == 1
    assert not (tmp_path / "results.json").exists()


def test_main_run_starts_server(config_file):
    with mock.patch("flask.Flask.run") as run:
        assert main(["--config", str(config_file), "run"]) == 0
    assert run.call_count == 1
    assert run.call_args.kwargs["port"] == 3000


def test_main_run_with_invalid_config_fails(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(yaml.safe_dump({"encryption": {"algorithm": "none"}}))
    with mock.patch("flask.Flask.run") as run:
        assert main(["--config", str(path), "run"]) == 1
    assert run.call_count == 0