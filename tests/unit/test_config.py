"""Unit tests for configuration loading."""

import json

import pytest
import yaml

from evstore.config import get_default_config, load_config, load_config_from_env, parse_config
from evstore.errors import ConfigurationError


def test_load_yaml_config(tmp_path):
    config_path = tmp_path / "evstore.yaml"
    config_path.write_text(yaml.dump({
        "s3": {
            "endpoint": "http://localhost:9000",
            "region": "eu-west-1",
            "access_key_id": "minio",
            "secret_access_key": "minio123",
            "bucket": "evidence",
            "object_lock_enabled": True,
        },
        "ipfs": {"endpoint": "http://localhost:5001", "timeout": 5},
    }))

    config = load_config(config_path)

    assert config.s3.bucket == "evidence"
    assert config.s3.region == "eu-west-1"
    assert config.s3.object_lock_enabled is True
    assert config.ipfs.endpoint == "http://localhost:5001"
    assert config.ipfs.timeout == 5.0
    assert config.configured_backends == ["s3", "ipfs"]


def test_load_json_config_with_camel_case_keys(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({
        "s3": {
            "endpoint": "https://s3.amazonaws.com",
            "region": "us-east-1",
            "accessKeyId": "test-key",
            "secretAccessKey": "test-secret",
            "bucket": "test-bucket",
            "objectLockEnabled": False,
        },
    }))

    config = load_config(config_path)

    assert config.s3.access_key_id == "test-key"
    assert config.s3.secret_access_key == "test-secret"
    assert config.s3.object_lock_enabled is False
    assert config.ipfs is None


def test_json_config_timeouts_are_milliseconds(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({
        "s3": {"bucket": "test-bucket", "timeout": 5000},
        "ipfs": {"endpoint": "http://localhost:5001", "timeout": 30000},
    }))

    config = load_config(config_path)

    assert config.s3.timeout == 5.0
    assert config.ipfs.timeout == 30.0


def test_yaml_config_timeouts_are_seconds(tmp_path):
    config_path = tmp_path / "evstore.yml"
    config_path.write_text(yaml.dump({"ipfs": {"endpoint": "http://localhost:5001", "timeout": 45}}))

    assert load_config(config_path).ipfs.timeout == 45.0


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_load_config_rejects_non_mapping(tmp_path):
    config_path = tmp_path / "bad.yaml"
    config_path.write_text("- just\n- a list\n")

    with pytest.raises(ConfigurationError):
        load_config(config_path)


def test_parse_config_requires_bucket():
    with pytest.raises(ConfigurationError, match="s3.bucket"):
        parse_config({"s3": {"endpoint": "http://localhost:9000"}})


def test_parse_config_requires_ipfs_endpoint():
    with pytest.raises(ConfigurationError, match="ipfs.endpoint"):
        parse_config({"ipfs": {"timeout": 10}})


def test_parse_config_defaults():
    config = parse_config({"s3": {"bucket": "evidence"}})

    assert config.s3.region == "us-east-1"
    assert config.s3.endpoint is None
    assert config.s3.timeout == 30.0
    assert config.s3.object_lock_enabled is False


def test_parse_empty_config_has_no_backends():
    assert parse_config({}).configured_backends == []


def test_load_config_from_env():
    config = load_config_from_env({
        "EVSTORE_S3_ENDPOINT": "http://localhost:9000",
        "EVSTORE_S3_ACCESS_KEY_ID": "minio",
        "EVSTORE_S3_SECRET_ACCESS_KEY": "minio123",
        "EVSTORE_S3_BUCKET": "evidence",
        "EVSTORE_S3_OBJECT_LOCK": "true",
        "EVSTORE_IPFS_ENDPOINT": "http://localhost:5001",
        "EVSTORE_IPFS_TIMEOUT": "12.5",
    })

    assert config.s3.endpoint == "http://localhost:9000"
    assert config.s3.region == "us-east-1"
    assert config.s3.object_lock_enabled is True
    assert config.ipfs.timeout == 12.5


def test_load_config_from_env_object_lock_off_by_default():
    config = load_config_from_env({"EVSTORE_S3_BUCKET": "evidence"})

    assert config.s3.object_lock_enabled is False
    assert config.ipfs is None


def test_load_config_from_empty_env():
    assert load_config_from_env({}).configured_backends == []


def test_default_config_round_trips_through_parser():
    raw = get_default_config()
    raw["s3"]["bucket"] = "evidence"

    config = parse_config(raw)

    assert config.s3.bucket == "evidence"
    assert config.s3.endpoint is None
    assert config.ipfs.endpoint == "http://127.0.0.1:5001"
