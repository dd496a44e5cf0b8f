"""Sending backup notifications to chat services, webhooks and monitors."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

import requests

_TIMEOUT = 30


class NotificationError(Exception):
    """A notification could not be delivered."""


def _now() -> datetime:
    return datetime.now().astimezone()


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.astimezone()


def _rfc3339(moment: datetime, *, fractional: bool = False) -> str:
    text = _aware(moment).isoformat(timespec="auto" if fractional else "seconds")
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


@dataclass
class Message:
    """A notification about the outcome of an operation."""

    title: str
    body: str
    status: str
    timestamp: datetime = field(default_factory=_now)
    details: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form sent to generic webhooks."""
        data: dict[str, Any] = {
            "title": self.title,
            "body": self.body,
            "status": self.status,
            "timestamp": _rfc3339(self.timestamp, fractional=True),
        }
        if self.details:
            data["details"] = dict(self.details)
        return data


@dataclass
class ProviderConfig:
    """Settings for one notification provider."""

    type: str = ""
    url: str = ""
    options: dict[str, str] = field(default_factory=dict)


@dataclass
class NotifyConfig:
    """Settings for the notifier as a whole."""

    enabled: bool = False
    notify_on_success: bool = False
    notify_on_error: bool = False
    providers: list[ProviderConfig] = field(default_factory=list)


def _check_response(response: requests.Response, service: str) -> None:
    if response.status_code >= 400:
        raise NotificationError(
            f"{service} returned status {response.status_code}: {response.text}"
        )


def _post_json(url: str, payload: Any) -> None:
    response = requests.post(
        url,
        data=json.dumps(payload).encode(),
        headers={"Content-Type": "application/json"},
        timeout=_TIMEOUT,
    )
    _check_response(response, "webhook")


def _header_value(text: str) -> str | bytes:
    try:
        text.encode("latin-1")
    except UnicodeEncodeError:
        return text.encode("utf-8")
    return text


class Provider(ABC):
    """A destination for notifications."""

    name: ClassVar[str] = ""

    @abstractmethod
    def send(self, message: Message) -> None:
        """Deliver ``message``, raising on failure."""


def build_slack_fields(details: Mapping[str, str] | None) -> list[dict[str, Any]]:
    """Turn message details into Slack attachment fields."""
    return [
        {"title": key, "value": value, "short": True}
        for key, value in (details or {}).items()
    ]


@dataclass
class SlackProvider(Provider):
    """Posts an attachment to a Slack incoming webhook."""

    url: str
    name: ClassVar[str] = "slack"

    def send(self, message: Message) -> None:
        color = "#dc3545" if message.status == "error" else "#36a64f"
        fields = build_slack_fields(message.details)
        payload = {
            "attachments": [
                {
                    "color": color,
                    "title": message.title,
                    "text": message.body,
                    "footer": "resticm",
                    "ts": int(_aware(message.timestamp).timestamp()),
                    "fields": fields or None,
                }
            ]
        }
        _post_json(self.url, payload)


@dataclass
class DiscordProvider(Provider):
    """Posts an embed to a Discord webhook."""

    url: str
    name: ClassVar[str] = "discord"

    def send(self, message: Message) -> None:
        color = 0xDC3545 if message.status == "error" else 0x36A64F
        payload = {
            "embeds": [
                {
                    "title": message.title,
                    "description": message.body,
                    "color": color,
                    "footer": {"text": "resticm"},
                    "timestamp": _rfc3339(message.timestamp),
                }
            ]
        }
        _post_json(self.url, payload)


@dataclass
class WebhookProvider(Provider):
    """Posts the message as JSON to an arbitrary URL."""

    url: str
    headers: dict[str, str] = field(default_factory=dict)
    name: ClassVar[str] = "webhook"

    def send(self, message: Message) -> None:
        headers = {"Content-Type": "application/json", **self.headers}
        response = requests.post(
            self.url,
            data=json.dumps(message.to_dict()).encode(),
            headers=headers,
            timeout=_TIMEOUT,
        )
        _check_response(response, "webhook")


@dataclass
class NtfyProvider(Provider):
    """Publishes the message body to an ntfy topic."""

    url: str
    topic: str = ""
    name: ClassVar[str] = "ntfy"

    def send(self, message: Message) -> None:
        url = self.url.removesuffix("/") + "/" + self.topic
        priority = "high" if message.status == "error" else "default"
        response = requests.post(
            url,
            data=message.body.encode(),
            headers={"Title": _header_value(message.title), "Priority": priority},
            timeout=_TIMEOUT,
        )
        _check_response(response, "ntfy")


@dataclass
class GoogleChatProvider(Provider):
    """Posts a card to a Google Chat webhook."""

    url: str
    name: ClassVar[str] = "google_chat"

    def send(self, message: Message) -> None:
        widgets: list[dict[str, Any]] = [{"textParagraph": {"text": message.body}}]
        widgets.extend(
            {"keyValue": {"topLabel": key, "content": value}}
            for key, value in (message.details or {}).items()
        )
        payload = {
            "cards": [
                {
                    "header": {
                        "title": message.title,
                        "subtitle": "resticm backup",
                    },
                    "sections": [{"widgets": widgets}],
                }
            ]
        }
        _post_json(self.url, payload)


@dataclass
class UptimeKumaProvider(Provider):
    """Sends a heartbeat to an Uptime Kuma push monitor."""

    url: str
    name: ClassVar[str] = "uptime_kuma"

    def send(self, message: Message) -> None:
        if message.status == "error":
            status, status_msg = "down", message.body
        else:
            status, status_msg = "up", "OK"
        response = requests.get(
            f"{self.url}?status={status}&msg={status_msg}", timeout=_TIMEOUT
        )
        _check_response(response, "uptime kuma")


def create_provider(config: ProviderConfig) -> Provider | None:
    """Build the provider named by ``config.type``, or None if it is unknown."""
    kind = config.type.lower()
    if kind == "slack":
        return SlackProvider(url=config.url)
    if kind == "discord":
        return DiscordProvider(url=config.url)
    if kind == "webhook":
        return WebhookProvider(url=config.url, headers=dict(config.options or {}))
    if kind == "ntfy":
        return NtfyProvider(url=config.url, topic=(config.options or {}).get("topic", ""))
    if kind in ("google", "googlechat", "google_chat"):
        return GoogleChatProvider(url=config.url)
    if kind in ("uptimekuma", "uptime_kuma", "uptime-kuma"):
        return UptimeKumaProvider(url=config.url)
    return None


@dataclass
class Notifier:
    """Dispatches notifications to every configured provider."""

    providers: list[Provider] = field(default_factory=list)
    enabled: bool = False
    on_success: bool = False
    on_error: bool = False

    @classmethod
    def from_config(cls, config: NotifyConfig) -> Notifier:
        providers = [
            provider
            for provider in map(create_provider, config.providers)
            if provider is not None
        ]
        return cls(
            providers=providers,
            enabled=config.enabled,
            on_success=config.notify_on_success,
            on_error=config.notify_on_error,
        )

    def notify_success(
        self, title: str, body: str, details: Mapping[str, str] | None = None
    ) -> None:
        """Send a success notification if enabled for successes."""
        if not self.enabled or not self.on_success:
            return
        message = Message(
            title=title,
            body=body,
            status="success",
            details=dict(details) if details is not None else None,
        )
        self._send(message)

    def notify_error(
        self,
        title: str,
        body: str,
        error: BaseException | None = None,
        details: Mapping[str, str] | None = None,
    ) -> None:
        """Send an error notification if enabled for errors."""
        if not self.enabled or not self.on_error:
            return
        merged = dict(details or {})
        if error is not None:
            merged["error"] = str(error)
        message = Message(title=title, body=body, status="error", details=merged)
        self._send(message)

    def _send(self, message: Message) -> None:
        last_error: NotificationError | None = None
        for provider in self.providers:
            try:
                provider.send(message)
            except (NotificationError, requests.RequestException) as exc:
                last_error = NotificationError(f"{provider.name}: {exc}")
                last_error.__cause__ = exc
        if last_error is not None:
            raise last_error