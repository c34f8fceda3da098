"""Utilities for reading and writing Kubernetes secret data."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from .errors import BuildError


def encode_secret_value(value: str | bytes) -> str:
    """Base64 encode a secret value for the ``data`` field of a Secret."""
    if isinstance(value, str):
        value = value.encode("utf-8")
    return base64.b64encode(value).decode("utf-8")


def decode_secret_value(value: str | bytes) -> str:
    """Decode a base64 ``data`` value of a Secret.

    Raises:
        ValueError: If the value is not valid base64 or not UTF-8
    """
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValueError("secret value is not valid base64 encoded UTF-8") from e


def get_secret_value(data: dict[str, str], secret_name: str, key: str) -> str:
    """Get a decoded value from the ``data`` of a Secret.

    Args:
        data: Secret data as stored on the wire (base64 values)
        secret_name: Name of the secret, for error messages
        key: Key in the secret

    Raises:
        BuildError: If the key is missing or cannot be decoded
    """
    if key not in data:
        raise BuildError(f"pull secret {secret_name} missing required key '{key}'")
    try:
        return decode_secret_value(data[key])
    except ValueError as e:
        raise BuildError(f"unable to decode key '{key}' of secret {secret_name}") from e


def extract_registry_auth(docker_config_json: str, registry: str) -> str:
    """Extract the ``auth`` token of ``registry`` from a docker config JSON document.

    Args:
        docker_config_json: Contents of a ``.dockerconfigjson`` key
        registry: Registry host whose credentials are wanted

    Returns:
        The auth token, as stored in the document

    Raises:
        BuildError: If the document is malformed or lacks the registry entry
    """
    try:
        docker_config: Any = json.loads(docker_config_json)
    except json.JSONDecodeError as e:
        raise BuildError("pull secret is not valid JSON") from e

    auths = docker_config.get("auths") if isinstance(docker_config, dict) else None
    if not isinstance(auths, dict):
        raise BuildError("unable to find auths section in pull secret")

    registry_config = auths.get(registry)
    if not isinstance(registry_config, dict):
        raise BuildError(f"unable to find pull secret auth key '{registry}' in pull secret")

    token = registry_config.get("auth")
    if not token:
        raise BuildError("unable to find access auth token in pull secret")
    return str(token)
