"""Configuration loader for the evidence store."""

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from evstore.errors import ConfigurationError
from evstore.types import EvidenceStoreConfig, IPFSConfig, S3Config


ENV_PREFIX = "EVSTORE_"
DEFAULT_TIMEOUT = 30.0

# Accept the camelCase spelling used by JSON config files. JSON files give
# timeouts in milliseconds, YAML files and environment variables in seconds.
_KEY_ALIASES = {
    "accessKeyId": "access_key_id",
    "secretAccessKey": "secret_access_key",
    "objectLockEnabled": "object_lock_enabled",
}


def load_config(config_path: Path) -> EvidenceStoreConfig:
    """Load configuration from a YAML (or JSON) file.

    Args:
        config_path: Path to configuration file

    Returns:
        EvidenceStoreConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If config is invalid
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ConfigurationError(f"Configuration must be a mapping: {config_path}")

    return parse_config(raw_config, millisecond_timeouts=config_path.suffix.lower() == ".json")


def _normalize(section: Mapping[str, Any]) -> dict[str, Any]:
    return {_KEY_ALIASES.get(key, key): value for key, value in section.items()}


def _parse_timeout(value: Any, milliseconds: bool) -> float:
    if value in (None, ""):
        return DEFAULT_TIMEOUT
    timeout = float(value)
    return timeout / 1000 if milliseconds else timeout


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def parse_config(raw_config: dict[str, Any], millisecond_timeouts: bool = False) -> EvidenceStoreConfig:
    """Parse raw configuration dictionary into EvidenceStoreConfig.

    Args:
        raw_config: Raw configuration dictionary
        millisecond_timeouts: Read `timeout` values as milliseconds

    Returns:
        EvidenceStoreConfig instance
    """
    s3_config = None
    raw_s3 = raw_config.get("s3")
    if raw_s3:
        s3 = _normalize(raw_s3)
        if not s3.get("bucket"):
            raise ConfigurationError("s3.bucket is required when the s3 section is present")
        s3_config = S3Config(
            bucket=str(s3["bucket"]),
            access_key_id=s3.get("access_key_id") or None,
            secret_access_key=s3.get("secret_access_key") or None,
            endpoint=s3.get("endpoint") or None,
            region=s3.get("region") or "us-east-1",
            object_lock_enabled=_parse_bool(s3.get("object_lock_enabled", False)),
            timeout=_parse_timeout(s3.get("timeout"), millisecond_timeouts),
        )

    ipfs_config = None
    raw_ipfs = raw_config.get("ipfs")
    if raw_ipfs:
        ipfs = _normalize(raw_ipfs)
        if not ipfs.get("endpoint"):
            raise ConfigurationError("ipfs.endpoint is required when the ipfs section is present")
        ipfs_config = IPFSConfig(
            endpoint=str(ipfs["endpoint"]),
            timeout=_parse_timeout(ipfs.get("timeout"), millisecond_timeouts),
        )

    return EvidenceStoreConfig(s3=s3_config, ipfs=ipfs_config)


def load_config_from_env(environ: Mapping[str, str] | None = None) -> EvidenceStoreConfig:
    """Build configuration from ``EVSTORE_*`` environment variables.

    The s3 section is present when ``EVSTORE_S3_BUCKET`` is set, the ipfs
    section when ``EVSTORE_IPFS_ENDPOINT`` is set.

    Args:
        environ: Environment mapping, defaults to ``os.environ``

    Returns:
        EvidenceStoreConfig instance
    """
    env = os.environ if environ is None else environ

    def get(name: str) -> str | None:
        return env.get(ENV_PREFIX + name) or None

    raw: dict[str, Any] = {}
    if get("S3_BUCKET"):
        raw["s3"] = {
            "bucket": get("S3_BUCKET"),
            "endpoint": get("S3_ENDPOINT"),
            "region": get("S3_REGION"),
            "access_key_id": get("S3_ACCESS_KEY_ID"),
            "secret_access_key": get("S3_SECRET_ACCESS_KEY"),
            "object_lock_enabled": get("S3_OBJECT_LOCK") or False,
        }
        if get("S3_TIMEOUT"):
            raw["s3"]["timeout"] = get("S3_TIMEOUT")
    if get("IPFS_ENDPOINT"):
        raw["ipfs"] = {"endpoint": get("IPFS_ENDPOINT")}
        if get("IPFS_TIMEOUT"):
            raw["ipfs"]["timeout"] = get("IPFS_TIMEOUT")

    return parse_config(raw)


def get_default_config() -> dict[str, Any]:
    """Return default configuration template.

    Returns:
        Default configuration dictionary
    """
    return {
        "s3": {
            "endpoint": "",
            "region": "us-east-1",
            "access_key_id": "",
            "secret_access_key": "",
            "bucket": "",
            "object_lock_enabled": False,
            "timeout": 30.0,
        },
        "ipfs": {
            "endpoint": "http://127.0.0.1:5001",
            "timeout": 30.0,
        },
    }
