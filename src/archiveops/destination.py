"""Destination adapter interface and the event log records adapters emit."""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Protocol, Union

from archiveops.errors import ConfigurationError

# syslog priorities
LOG_ALERT = 1
LOG_INFO = 6

JsonBlob = Union[str, bytes, bytearray, Dict[str, Any], None]


@dataclass(frozen=True)
class EventLogItem:
    """A severity-tagged outcome record. `level` is a syslog priority."""

    level: int
    message: str


class EventLog(Protocol):
    """Write side of the channel event log records are pushed to."""

    def put(self, item: EventLogItem) -> None: ...


@dataclass
class DestinationConfig:
    """Configuration common to all destination adapters.

    `adapter_config` is the adapter-specific JSON blob, passed through
    untouched until the adapter parses it.
    """

    type: str
    adapter_config: JsonBlob = field(default=None)


def parse_json_config(blob: JsonBlob, what: str) -> Dict[str, Any]:
    """Decode a JSON-shaped config blob into a dict.

    Accepts raw JSON text/bytes or an already-decoded mapping. An empty blob
    or a JSON null decodes to an empty dict.
    """
    if blob is None:
        return {}
    if isinstance(blob, dict):
        return blob
    if isinstance(blob, (bytes, bytearray)):
        try:
            blob = blob.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ConfigurationError(f"error parsing {what}: {e}") from e
    if not isinstance(blob, str):
        raise ConfigurationError(
            f"error parsing {what}: expected JSON text or an object, got {type(blob).__name__}"
        )
    if not blob.strip():
        return {}
    try:
        data = json.loads(blob)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"error parsing {what}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"error parsing {what}: expected a JSON object")
    return data


class Destination(ABC):
    """Any place archived data can be written."""

    @abstractmethod
    def for_set(self, set_name: str, set_config: JsonBlob) -> None:
        """Apply per-archive-set settings."""

    @abstractmethod
    def write(self, data: bytes, event_log: EventLog) -> str:
        """Store `data`, report the outcome to `event_log`, return its location."""
