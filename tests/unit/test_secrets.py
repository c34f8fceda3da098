"""Tests for secret utilities."""

from __future__ import annotations

import json

import pytest

from ocm_agent_operator.utils.errors import BuildError
from ocm_agent_operator.utils.secrets import (
    decode_secret_value,
    encode_secret_value,
    extract_registry_auth,
    get_secret_value,
)


class TestSecretValues:
    """Test base64 handling of Secret data."""

    def test_encode(self):
        """Test encoding of str and bytes."""
        assert encode_secret_value("token") == "dG9rZW4="
        assert encode_secret_value(b"token") == "dG9rZW4="

    def test_decode(self):
        """Test decoding a valid value."""
        assert decode_secret_value("dG9rZW4=") == "token"

    def test_decode_invalid(self):
        """Test that invalid base64 is rejected."""
        with pytest.raises(ValueError):
            decode_secret_value("not base64!")

    def test_get_secret_value(self):
        """Test reading a key from Secret data."""
        assert get_secret_value({"key": "dmFsdWU="}, "my-secret", "key") == "value"

    def test_get_secret_value_missing_key(self):
        """Test that a missing key is a build error."""
        with pytest.raises(BuildError, match="missing required key 'key'"):
            get_secret_value({}, "my-secret", "key")

    def test_get_secret_value_undecodable(self):
        """Test that undecodable data is a build error."""
        with pytest.raises(BuildError, match="unable to decode"):
            get_secret_value({"key": "%%%"}, "my-secret", "key")


class TestExtractRegistryAuth:
    """Test reading registry credentials from a docker config."""

    def test_extract(self):
        """Test the happy path."""
        config = json.dumps({"auths": {"cloud.openshift.com": {"auth": "abc"}}})

        assert extract_registry_auth(config, "cloud.openshift.com") == "abc"

    @pytest.mark.parametrize(
        "document,message",
        [
            ("{not json", "not valid JSON"),
            ("[]", "auths section"),
            ('{"auths": {}}', "auth key 'cloud.openshift.com'"),
            ('{"auths": {"cloud.openshift.com": {"email": "x"}}}', "access auth token"),
        ],
    )
    def test_malformed(self, document, message):
        """Test that every malformed shape is a build error."""
        with pytest.raises(BuildError, match=message):
            extract_registry_auth(document, "cloud.openshift.com")
