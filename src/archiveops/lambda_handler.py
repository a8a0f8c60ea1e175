"""AWS Lambda handler for archiveops.

Runs on a daily schedule. Each invocation archives the incoming event
through the configured destination, and emails the alert recipients if
archiving fails.

Lambda environment variables:
    AWS_REGION                  – region for SES
    STAGE                       – deployment stage (default "production")
    DESTINATION_TYPE            – destination adapter (default "AwsS3")
    DESTINATION_CONFIG          – adapter config JSON
    ARCHIVE_SET                 – archive set name (default "default")
    ARCHIVE_SET_CONFIG          – per-set config JSON (default "{}")
    ALERT_RETURN_TO_ADDR        – SES verified sender
    ALERT_SUBJECT               – alert subject line
    ALERT_RECIPIENTS            – comma-separated recipient list
    ALERT_AWS_ACCESS_KEY_ID     – keys used for SES
    ALERT_AWS_SECRET_ACCESS_KEY
    LOG_LEVEL                   – logging level (default INFO)
"""

import dataclasses
import json
import os
import queue

from archiveops.alert import send_email
from archiveops.config import (
    alert_config_from_env,
    destination_config_from_env,
    get_optional_env,
    shorten_stage_name,
)
from archiveops.errors import ArchiveOpsError
from archiveops.log import drain_event_log, get_logger
from archiveops.s3 import new_destination

logger = get_logger(__name__)


def _alert(set_name: str, error: Exception) -> None:
    config = alert_config_from_env()
    stage = shorten_stage_name(get_optional_env("STAGE", "production"))
    if stage:
        config = dataclasses.replace(config, subject_text=f"{config.subject_text} [{stage}]")

    body = f"Archiving set '{set_name}' failed:\n\n{error}\n"
    send_email(config, body)


def handler(event, context):
    """AWS Lambda entry point.

    1. Builds the destination from the environment
    2. Writes the event payload as one archive object
    3. Forwards event log records to the logger, alerting on failure
    """
    set_name = get_optional_env("ARCHIVE_SET", "default")
    events = queue.Queue()

    try:
        destination = new_destination(destination_config_from_env())
        destination.for_set(set_name, os.environ.get("ARCHIVE_SET_CONFIG", "{}"))

        payload = json.dumps(event, default=str).encode("utf-8")
        key = destination.write(payload, events)
    except ArchiveOpsError as e:
        logger.error("Archiving set '%s' failed: %s", set_name, e)
        _alert(set_name, e)
        return {"statusCode": 500, "body": str(e)}
    finally:
        drain_event_log(events, logger)

    return {"statusCode": 200, "body": key}
