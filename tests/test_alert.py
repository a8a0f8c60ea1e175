"""Tests for the SES alert notifier.

No request ever reaches AWS: clients come from a fake client factory that
hands out MagicMocks, or real boto3 clients wrapped in a botocore Stubber.

    pytest tests/test_alert.py -v
"""

import dataclasses
import logging
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from botocore.stub import Stubber

from archiveops.alert import AlertConfig, EmailMessage, send_email, send_one
from archiveops.errors import ClientInitError, SendError


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

SENDER = "alerts@example.org"


def _client_error(message, code="MessageRejected"):
    return ClientError({"Error": {"Code": code, "Message": message}}, "SendEmail")


class FakeClientFactory:
    """Records every client request and returns a shared mock client."""

    def __init__(self, client=None, error=None):
        self.client = client or MagicMock()
        self.error = error
        self.calls = []

    def __call__(self, service_name, region, provider):
        self.calls.append((service_name, region, provider.resolve()))
        if self.error:
            raise self.error
        return self.client


@pytest.fixture
def config():
    return AlertConfig(
        aws_region="us-east-1",
        return_to_addr=SENDER,
        subject_text="Archive failure",
        recipient_emails=["a@example.org", "b@example.org", "c@example.org"],
        aws_access_key_id="AKIDEXAMPLE",
        aws_secret_access_key="secret",
    )


@pytest.fixture
def factory():
    f = FakeClientFactory()
    f.client.send_email.return_value = {"MessageId": "msg-1"}
    return f


def _error_records(caplog):
    return [r for r in caplog.records if r.levelno >= logging.ERROR]


# ---------------------------------------------------------------------------
# 1. Message construction
# ---------------------------------------------------------------------------


class TestEmailMessage:
    def test_to_ses_uses_charset_for_subject_and_body(self):
        msg = EmailMessage("Subject", "Body text", "ISO-8859-1")
        assert msg.to_ses() == {
            "Subject": {"Charset": "ISO-8859-1", "Data": "Subject"},
            "Body": {"Text": {"Charset": "ISO-8859-1", "Data": "Body text"}},
        }

    def test_default_charset(self):
        assert EmailMessage("s", "b").to_ses()["Subject"]["Charset"] == "UTF-8"


# ---------------------------------------------------------------------------
# 2. Single send
# ---------------------------------------------------------------------------


class TestSendOne:
    def test_returns_message_id_via_stubbed_ses(self):
        client = boto3.client(
            "ses",
            region_name="us-east-1",
            aws_access_key_id="AKIDEXAMPLE",
            aws_secret_access_key="secret",
        )
        msg = EmailMessage("Subject", "Body")
        with Stubber(client) as stubber:
            stubber.add_response(
                "send_email",
                {"MessageId": "0100-abc"},
                {
                    "Destination": {"ToAddresses": ["ops@example.org"]},
                    "Message": msg.to_ses(),
                    "Source": SENDER,
                },
            )
            assert send_one(client, msg, "ops@example.org", SENDER) == "0100-abc"
            stubber.assert_no_pending_responses()

    def test_client_error_becomes_send_error(self):
        client = MagicMock()
        client.send_email.side_effect = _client_error("Email address is not verified")
        with pytest.raises(SendError) as exc_info:
            send_one(client, EmailMessage("s", "b"), "x@example.org", SENDER)
        assert "Email address is not verified" in str(exc_info.value)

    def test_connection_error_becomes_send_error(self):
        client = MagicMock()
        client.send_email.side_effect = EndpointConnectionError(endpoint_url="https://ses")
        with pytest.raises(SendError):
            send_one(client, EmailMessage("s", "b"), "x@example.org", SENDER)


# ---------------------------------------------------------------------------
# 3. Fan-out
# ---------------------------------------------------------------------------


class TestSendEmail:
    def test_one_request_per_recipient(self, config, factory):
        send_email(config, "the body", client_factory=factory)

        calls = factory.client.send_email.call_args_list
        assert [c.kwargs["Destination"] for c in calls] == [
            {"ToAddresses": ["a@example.org"]},
            {"ToAddresses": ["b@example.org"]},
            {"ToAddresses": ["c@example.org"]},
        ]
        for c in calls:
            assert c.kwargs["Source"] == SENDER
            assert c.kwargs["Message"]["Subject"]["Data"] == "Archive failure"
            assert c.kwargs["Message"]["Body"]["Text"]["Data"] == "the body"

    def test_client_built_once_with_static_credentials(self, config, factory):
        send_email(config, "body", client_factory=factory)

        assert len(factory.calls) == 1
        service, region, creds = factory.calls[0]
        assert (service, region) == ("ses", "us-east-1")
        assert creds.access_key_id == "AKIDEXAMPLE"
        assert creds.secret_access_key == "secret"

    def test_success_logs_message_id(self, config, factory, caplog):
        caplog.set_level(logging.INFO, logger="archiveops.alert")
        send_email(config, "body", client_factory=factory)

        assert "alert message sent to b@example.org, message ID: msg-1" in caplog.text
        assert not _error_records(caplog)

    def test_failures_are_isolated_and_summarised_once(self, config, factory, caplog):
        factory.client.send_email.side_effect = [
            _client_error("first failure"),
            {"MessageId": "msg-2"},
            _client_error("last failure"),
        ]

        send_email(config, "body", client_factory=factory)

        assert factory.client.send_email.call_count == 3
        errors = _error_records(caplog)
        assert len(errors) == 1
        line = errors[0].getMessage()
        assert line.startswith(f"Error sending email from '{SENDER}' to 'a@example.org, c@example.org': ")
        assert "last failure" in line
        assert "first failure" not in line
        assert "b@example.org" not in line

    def test_all_recipients_fail(self, config, factory, caplog):
        factory.client.send_email.side_effect = _client_error("throttled", code="Throttling")

        send_email(config, "body", client_factory=factory)

        errors = _error_records(caplog)
        assert len(errors) == 1
        assert "'a@example.org, b@example.org, c@example.org'" in errors[0].getMessage()

    def test_does_not_raise_on_unexpected_send_failures(self, config, factory):
        factory.client.send_email.side_effect = EndpointConnectionError(endpoint_url="https://ses")
        send_email(config, "body", client_factory=factory)

    def test_empty_recipient_list_makes_no_calls(self, config, factory, caplog):
        config = dataclasses.replace(config, recipient_emails=[])

        send_email(config, "body", client_factory=factory)

        assert factory.calls == []
        factory.client.send_email.assert_not_called()
        assert not _error_records(caplog)

    @pytest.mark.parametrize(
        "key_id,secret",
        [("", "secret"), ("AKIDEXAMPLE", ""), ("", "")],
    )
    def test_missing_credentials_warns_and_skips(self, config, factory, caplog, key_id, secret):
        config = dataclasses.replace(config, aws_access_key_id=key_id, aws_secret_access_key=secret)

        send_email(config, "body", client_factory=factory)

        assert factory.calls == []
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert [r.getMessage() for r in warnings] == ["AWS credentials not provided for email alerts"]

    def test_client_init_failure_is_logged_not_raised(self, config, caplog):
        factory = FakeClientFactory(error=ClientInitError("bad region"))

        send_email(config, "body", client_factory=factory)

        factory.client.send_email.assert_not_called()
        errors = _error_records(caplog)
        assert len(errors) == 1
        assert "error loading AWS config: bad region" in errors[0].getMessage()
