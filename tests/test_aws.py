"""Tests for AWS client construction."""

import pytest

from archiveops.aws import Credentials, StaticCredentialsProvider, new_client
from archiveops.errors import ClientInitError


class TestCredentials:
    def test_static_provider_returns_fixed_keys(self):
        creds = StaticCredentialsProvider("AKIDEXAMPLE", "secret").resolve()
        assert creds == Credentials("AKIDEXAMPLE", "secret", "")

    def test_static_provider_session_token(self):
        creds = StaticCredentialsProvider("AKIDEXAMPLE", "secret", "token").resolve()
        assert creds.session_token == "token"


class TestNewClient:
    def test_builds_client_for_region(self):
        client = new_client("s3", "eu-west-1", StaticCredentialsProvider("AKIDEXAMPLE", "secret"))
        assert client.meta.region_name == "eu-west-1"
        assert client.meta.service_model.service_name == "s3"

    def test_uses_given_credentials(self):
        client = new_client("ses", "us-east-1", StaticCredentialsProvider("AKIDEXAMPLE", "secret"))
        frozen = client._request_signer._credentials.get_frozen_credentials()
        assert frozen.access_key == "AKIDEXAMPLE"
        assert frozen.secret_key == "secret"

    def test_invalid_region_raises_client_init_error(self):
        with pytest.raises(ClientInitError, match="error initializing ses client"):
            new_client("ses", "not a region!", StaticCredentialsProvider("AKIDEXAMPLE", "secret"))
