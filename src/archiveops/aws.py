"""AWS client construction.

Credentials are resolved through an explicit provider object instead of
boto3's ambient credential chain, so callers (and tests) decide exactly
which keys a client is built with.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

import boto3
from botocore.exceptions import BotoCoreError

from archiveops.errors import ClientInitError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    access_key_id: str
    secret_access_key: str
    session_token: str = ""


class CredentialsProvider(Protocol):
    def resolve(self) -> Credentials: ...


class StaticCredentialsProvider:
    """Hands out a fixed set of keys."""

    def __init__(self, access_key_id: str, secret_access_key: str, session_token: str = ""):
        self._credentials = Credentials(access_key_id, secret_access_key, session_token)

    def resolve(self) -> Credentials:
        return self._credentials


def new_client(service_name: str, region: str, provider: CredentialsProvider):
    """
    Build a boto3 client for a service using the given region and credentials.

    Args:
        service_name: boto3 service name, e.g. "ses" or "s3"
        region: AWS region name
        provider: Source of the access keys

    Returns:
        A low-level boto3 client

    Raises:
        ClientInitError: If boto3 rejects the region or credentials
    """
    creds = provider.resolve()
    try:
        session = boto3.session.Session(
            aws_access_key_id=creds.access_key_id,
            aws_secret_access_key=creds.secret_access_key,
            aws_session_token=creds.session_token or None,
            region_name=region,
        )
        client = session.client(service_name)
    except (BotoCoreError, ValueError) as e:
        raise ClientInitError(f"error initializing {service_name} client: {e}") from e

    logger.debug("Initialized %s client for region %s", service_name, region)
    return client
