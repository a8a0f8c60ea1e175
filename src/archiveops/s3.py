"""S3 destination adapter.

Adapter config (the destination's `adapter_config` JSON):

    {
        "BucketName": "my-archive",
        "AwsConfig": {
            "Region": "us-east-1",
            "AccessKeyId": "...",
            "SecretAccessKey": "..."
        }
    }

Per-set config:

    {"ObjectNamePrefix": "people/"}

When a set leaves `ObjectNamePrefix` empty it defaults to
`<set name>/data_`, so several sets can share one bucket.

Object keys are the prefix followed by the wall-clock time in nanoseconds:

    s3://<bucket>/<prefix><time_ns>
"""

import logging
from dataclasses import dataclass
from time import time_ns
from typing import Any, Callable, Dict

from botocore.exceptions import BotoCoreError, ClientError

from archiveops.aws import StaticCredentialsProvider, new_client
from archiveops.destination import (
    LOG_ALERT,
    LOG_INFO,
    Destination,
    DestinationConfig,
    EventLog,
    EventLogItem,
    JsonBlob,
    parse_json_config,
)
from archiveops.errors import ArchiveOpsError, ConfigurationError, UploadError

logger = logging.getLogger(__name__)

DEFAULT_OBJECT_NAME_PREFIX = "data_"


@dataclass(frozen=True)
class AwsConfig:
    region: str
    access_key_id: str
    secret_access_key: str


@dataclass(frozen=True)
class S3Config:
    bucket_name: str
    aws_config: AwsConfig


@dataclass
class S3Set:
    object_name_prefix: str = ""


def _string_field(raw: Dict[str, Any], name: str, what: str) -> str:
    """Return a string field, or "" when absent. Other types are rejected."""
    value = raw.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigurationError(f"error parsing {what}: {name} must be a string")
    return value


def read_config(data: JsonBlob) -> S3Config:
    """Parse and validate the S3 adapter config.

    Raises:
        ConfigurationError: If the JSON is malformed or a required field is blank
    """
    what = "S3 destination config"
    raw = parse_json_config(data, what)
    aws = raw.get("AwsConfig") or {}
    if not isinstance(aws, dict):
        raise ConfigurationError(f"error parsing {what}: AwsConfig must be an object")

    config = S3Config(
        bucket_name=_string_field(raw, "BucketName", what),
        aws_config=AwsConfig(
            region=_string_field(aws, "Region", what),
            access_key_id=_string_field(aws, "AccessKeyId", what),
            secret_access_key=_string_field(aws, "SecretAccessKey", what),
        ),
    )

    if not config.bucket_name:
        raise ConfigurationError("config is missing an S3 bucket name")
    if not config.aws_config.region:
        raise ConfigurationError("config is missing an AWS region")
    if not config.aws_config.access_key_id:
        raise ConfigurationError("config is missing an AWS access key")
    if not config.aws_config.secret_access_key:
        raise ConfigurationError("config is missing an AWS secret access key")

    return config


class S3Destination(Destination):
    """Writes archive data as new objects in one S3 bucket."""

    def __init__(
        self,
        destination_config: DestinationConfig,
        s3_config: S3Config,
        client_factory: Callable = new_client,
    ):
        self.destination_config = destination_config
        self.s3_config = s3_config
        self.s3_set = S3Set()
        self._client_factory = client_factory

    @classmethod
    def from_destination_config(
        cls, destination_config: DestinationConfig, client_factory: Callable = new_client
    ) -> "S3Destination":
        """Build an adapter from the common destination config.

        Raises:
            ConfigurationError: If the adapter config is invalid
        """
        try:
            s3_config = read_config(destination_config.adapter_config)
        except ConfigurationError as e:
            raise ConfigurationError(f"error reading S3 destination config: {e}") from e
        return cls(destination_config, s3_config, client_factory=client_factory)

    @property
    def bucket_name(self) -> str:
        return self.s3_config.bucket_name

    @property
    def object_name_prefix(self) -> str:
        return self.s3_set.object_name_prefix

    def for_set(self, set_name: str, set_config: JsonBlob) -> None:
        what = f"S3 set config for '{set_name}'"
        raw = parse_json_config(set_config, what)
        self.s3_set = S3Set(object_name_prefix=_string_field(raw, "ObjectNamePrefix", what))

        if not self.s3_set.object_name_prefix:
            self.s3_set.object_name_prefix = f"{set_name}/{DEFAULT_OBJECT_NAME_PREFIX}"

    def write(self, data: bytes, event_log: EventLog) -> str:
        """Upload `data` under a new timestamped key.

        Exactly one record is pushed to `event_log`: LOG_ALERT with the error
        on failure, LOG_INFO with the key and bucket on success.

        Returns:
            The object key

        Raises:
            ClientInitError: If the S3 client could not be built
            UploadError: If the upload failed
        """
        key = f"{self.object_name_prefix}{time_ns()}"
        try:
            self._save_object(data, key)
        except ArchiveOpsError as e:
            event_log.put(EventLogItem(LOG_ALERT, f"error saving to S3: {e}"))
            raise

        event_log.put(EventLogItem(LOG_INFO, f"saved to {key} on bucket {self.bucket_name}"))
        return key

    def _save_object(self, data: bytes, key: str) -> None:
        aws = self.s3_config.aws_config
        client = self._client_factory(
            "s3",
            aws.region,
            StaticCredentialsProvider(aws.access_key_id, aws.secret_access_key),
        )

        try:
            client.put_object(Bucket=self.bucket_name, Key=key, Body=data)
        except (BotoCoreError, ClientError) as e:
            raise UploadError(f"error saving data to {self.bucket_name}/{key}: {e}") from e

        logger.debug("Uploaded s3://%s/%s", self.bucket_name, key)


DESTINATION_TYPES: Dict[str, Callable[[DestinationConfig], Destination]] = {
    "AwsS3": S3Destination.from_destination_config,
}


def new_destination(destination_config: DestinationConfig) -> Destination:
    """Build the adapter registered for `destination_config.type`."""
    try:
        factory = DESTINATION_TYPES[destination_config.type]
    except KeyError:
        raise ConfigurationError(
            f"unrecognized destination type '{destination_config.type}'"
        ) from None
    return factory(destination_config)
