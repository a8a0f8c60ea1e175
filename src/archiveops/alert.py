"""Email alerts through Amazon SES.

Usage:
- Build an `AlertConfig` (see `archiveops.config` for YAML / env loaders).
- Call `send_email(config, body)`.

Alerts are fire-and-forget: every failure is logged and nothing is raised,
so a broken mail setup can never take down the job that is reporting.
Recipients are sent one at a time so one bad address cannot sabotage
delivery to the rest.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from botocore.exceptions import BotoCoreError, ClientError

from archiveops.aws import StaticCredentialsProvider, new_client
from archiveops.errors import ClientInitError, SendError

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "UTF-8"

ClientFactory = Callable[..., Any]


@dataclass(frozen=True)
class AlertConfig:
    aws_region: str
    return_to_addr: str
    subject_text: str
    recipient_emails: List[str] = field(default_factory=list)
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    char_set: str = DEFAULT_CHARSET

    def has_credentials(self) -> bool:
        return bool(self.aws_access_key_id and self.aws_secret_access_key)


@dataclass(frozen=True)
class EmailMessage:
    subject: str
    body: str
    char_set: str = DEFAULT_CHARSET

    def to_ses(self) -> Dict[str, Any]:
        """Render as the `Message` argument of SES SendEmail."""
        return {
            "Subject": {"Charset": self.char_set, "Data": self.subject},
            "Body": {"Text": {"Charset": self.char_set, "Data": self.body}},
        }


def send_one(client, message: EmailMessage, to: str, source: str) -> str:
    """Send `message` to a single address.

    Returns:
        The SES message id

    Raises:
        SendError: If SES rejects the request or it never reaches SES
    """
    try:
        result = client.send_email(
            Destination={"ToAddresses": [to]},
            Message=message.to_ses(),
            Source=source,
        )
    except ClientError as e:
        raise SendError(
            f"error sending email, code: {e.response['Error'].get('Code')}, error: {e}"
        ) from e
    except BotoCoreError as e:
        raise SendError(f"error sending email, error: {e}") from e

    message_id = result["MessageId"]
    logger.info("alert message sent to %s, message ID: %s", to, message_id)
    return message_id


def send_email(
    config: AlertConfig,
    body: str,
    client_factory: ClientFactory = new_client,
) -> None:
    """Send `body` to every recipient in `config`, one SES request each.

    Only the most recent error is kept; after the loop a single line names
    the sender, all failed recipients and that last error.
    """
    if not config.has_credentials():
        logger.warning("AWS credentials not provided for email alerts")
        return

    if not config.recipient_emails:
        logger.info("No alert recipients configured, nothing to send")
        return

    msg = EmailMessage(config.subject_text, body, config.char_set)

    try:
        client = client_factory(
            "ses",
            config.aws_region,
            StaticCredentialsProvider(config.aws_access_key_id, config.aws_secret_access_key),
        )
    except ClientInitError as e:
        logger.error("error loading AWS config: %s", e)
        return

    last_error = None
    failures = []

    for to in config.recipient_emails:
        try:
            send_one(client, msg, to, config.return_to_addr)
        except SendError as e:
            last_error = e
            failures.append(to)

    if last_error is not None:
        logger.error(
            "Error sending email from '%s' to '%s': %s",
            config.return_to_addr,
            ", ".join(failures),
            last_error,
        )
