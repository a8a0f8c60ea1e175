"""Configuration loading from YAML files and environment variables"""

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import yaml

from archiveops.alert import DEFAULT_CHARSET, AlertConfig
from archiveops.destination import DestinationConfig
from archiveops.errors import ConfigurationError

DEFAULT_DESTINATION_TYPE = "AwsS3"

_STAGE_NAMES = {
    "production": "prod",
    "prod": "prod",
    "develop": "dev",
    "dev": "dev",
    "staging": "stg",
    "stg": "stg",
}


def get_optional_env(name: str, fallback: str, environ: Mapping[str, str] = os.environ) -> str:
    """Return the environment variable, or `fallback` if unset or empty."""
    return environ.get(name) or fallback


def shorten_stage_name(stage: str) -> str:
    """Map a deployment stage to its short form. Unknown stages map to ''."""
    return _STAGE_NAMES.get(stage, "")


def split_recipients(value: Union[str, List[str], None]) -> List[str]:
    """Normalise a recipient list given as a list or comma-separated string."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [email.strip() for email in value if email and email.strip()]


def _alert_config_from_mapping(data: Dict[str, Any]) -> AlertConfig:
    return AlertConfig(
        aws_region=data.get("aws_region") or "",
        return_to_addr=data.get("return_to_addr") or "",
        subject_text=data.get("subject_text") or "",
        recipient_emails=split_recipients(data.get("recipient_emails")),
        aws_access_key_id=data.get("aws_access_key_id") or "",
        aws_secret_access_key=data.get("aws_secret_access_key") or "",
        char_set=data.get("char_set") or DEFAULT_CHARSET,
    )


def load_alert_config(config_path: Path) -> AlertConfig:
    """
    Load alert settings from a YAML file.

    Args:
        config_path: Path to a YAML mapping with AlertConfig field names as keys

    Returns:
        The parsed AlertConfig
    """
    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"alert config {config_path} must be a mapping")

    return _alert_config_from_mapping(data)


def alert_config_from_env(environ: Mapping[str, str] = os.environ) -> AlertConfig:
    """Build an AlertConfig from ALERT_* environment variables."""
    return _alert_config_from_mapping(
        {
            "aws_region": environ.get("AWS_REGION"),
            "return_to_addr": environ.get("ALERT_RETURN_TO_ADDR"),
            "subject_text": environ.get("ALERT_SUBJECT"),
            "recipient_emails": environ.get("ALERT_RECIPIENTS"),
            "aws_access_key_id": environ.get("ALERT_AWS_ACCESS_KEY_ID"),
            "aws_secret_access_key": environ.get("ALERT_AWS_SECRET_ACCESS_KEY"),
            "char_set": environ.get("ALERT_CHARSET"),
        }
    )


def destination_config_from_env(environ: Mapping[str, str] = os.environ) -> DestinationConfig:
    """Build a DestinationConfig from DESTINATION_TYPE and DESTINATION_CONFIG."""
    adapter_config = environ.get("DESTINATION_CONFIG", "")
    if not adapter_config.strip():
        raise ConfigurationError("DESTINATION_CONFIG is not set")

    return DestinationConfig(
        type=get_optional_env("DESTINATION_TYPE", DEFAULT_DESTINATION_TYPE, environ),
        adapter_config=adapter_config,
    )
