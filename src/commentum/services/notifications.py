# src/commentum/services/notifications.py
"""Discord webhook notifications.

Notifications are best effort: they run after the response has been sent and a
delivery failure is logged, never raised to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from commentum.core.settings import Settings
from commentum.db.time import utcnow

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100

COLOR_GREEN = 0x00FF00
COLOR_YELLOW = 0xFFFF00
COLOR_RED = 0xFF0000
COLOR_ORANGE = 0xFFAA00
COLOR_BLUE = 0x00BFFF
COLOR_PURPLE = 0x9B59B6
COLOR_GRAY = 0x808080


class NotificationType(str, Enum):
    COMMENT_CREATED = "comment_created"
    COMMENT_UPDATED = "comment_updated"
    COMMENT_DELETED = "comment_deleted"
    COMMENT_REPORTED = "comment_reported"
    REPORT_RESOLVED = "report_resolved"
    USER_WARNED = "user_warned"
    USER_MUTED = "user_muted"
    USER_BANNED = "user_banned"
    USER_UNBANNED = "user_unbanned"
    ROLE_CHANGED = "role_changed"


@dataclass
class Notification:
    """A moderation or activity event to announce."""

    type: NotificationType
    username: str | None = None
    moderator: str | None = None
    moderator_role: str | None = None
    media_title: str | None = None
    content: str | None = None
    reason: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


def _preview(text: str | None) -> str:
    if not text:
        return "N/A"
    return text[:PREVIEW_LENGTH]


def build_embed(notification: Notification) -> dict[str, Any]:
    """Render ``notification`` as a Discord embed."""
    user = notification.username or "Unknown"
    moderator = notification.moderator or "Unknown"
    media = notification.media_title or "Unknown media"
    kind = notification.type
    fields: list[dict[str, Any]] = []

    if kind is NotificationType.COMMENT_CREATED:
        title, color = "💬 New Comment", COLOR_GREEN
        description = f"**{user}** commented on **{media}**"
        fields = [
            {"name": "User", "value": user, "inline": True},
            {"name": "Content", "value": _preview(notification.content), "inline": False},
        ]
    elif kind is NotificationType.COMMENT_UPDATED:
        title, color = "✏️ Comment Edited", COLOR_YELLOW
        description = f"**{user}** edited a comment on **{media}**"
        fields = [
            {"name": "User", "value": user, "inline": True},
            {"name": "New Content", "value": _preview(notification.content), "inline": False},
        ]
    elif kind is NotificationType.COMMENT_DELETED:
        title, color = "🗑️ Comment Deleted", COLOR_RED
        if notification.moderator:
            description = f"**{moderator}** deleted a comment by **{user}**"
            fields = [
                {
                    "name": "Moderator",
                    "value": f"{moderator} ({notification.moderator_role or 'moderator'})",
                    "inline": True,
                },
                {"name": "Original Author", "value": user, "inline": True},
                {
                    "name": "Reason",
                    "value": notification.reason or "Not specified",
                    "inline": False,
                },
            ]
        else:
            description = f"**{user}** deleted their comment on **{media}**"
    elif kind is NotificationType.COMMENT_REPORTED:
        title, color = "🚨 Comment Reported", COLOR_ORANGE
        description = "A comment was reported"
        fields = [
            {"name": "Reporter", "value": user, "inline": True},
            {"name": "Reason", "value": notification.reason or "Not specified", "inline": True},
            {"name": "Comment", "value": _preview(notification.content), "inline": False},
        ]
    elif kind is NotificationType.REPORT_RESOLVED:
        title, color = "✅ Report Resolved", COLOR_BLUE
        resolution = notification.extra.get("resolution", "resolved")
        description = f"**{moderator}** marked a report as {resolution}"
        fields = [
            {"name": "Moderator", "value": moderator, "inline": True},
            {"name": "Notes", "value": notification.reason or "None", "inline": False},
        ]
    elif kind is NotificationType.USER_WARNED:
        title, color = "⚠️ User Warned", COLOR_YELLOW
        description = f"User **{user}** has been warned"
        fields = [
            {"name": "Moderator", "value": moderator, "inline": True},
            {"name": "Reason", "value": notification.reason or "Rule violation", "inline": False},
            {
                "name": "Warning Count",
                "value": str(notification.extra.get("warning_count", "unknown")),
                "inline": False,
            },
        ]
    elif kind is NotificationType.USER_MUTED:
        title, color = "🔇 User Muted", COLOR_ORANGE
        description = f"User **{user}** has been muted"
        fields = [
            {"name": "Moderator", "value": moderator, "inline": True},
            {
                "name": "Until",
                "value": str(notification.extra.get("muted_until", "unknown")),
                "inline": True,
            },
            {"name": "Reason", "value": notification.reason or "Not specified", "inline": False},
        ]
    elif kind is NotificationType.USER_BANNED:
        title, color = "🔨 User Banned", COLOR_RED
        description = f"User **{user}** has been banned"
        fields = [
            {"name": "Moderator", "value": moderator, "inline": True},
            {
                "name": "Reason",
                "value": notification.reason or "Repeated violations",
                "inline": False,
            },
        ]
    elif kind is NotificationType.USER_UNBANNED:
        title, color = "🔓 User Unbanned", COLOR_GREEN
        description = f"User **{user}** has been unbanned"
        fields = [{"name": "Moderator", "value": moderator, "inline": True}]
    elif kind is NotificationType.ROLE_CHANGED:
        title, color = "🛡️ Role Changed", COLOR_PURPLE
        previous = notification.extra.get("previous_role", "unknown")
        new = notification.extra.get("new_role", "unknown")
        description = f"**{user}** is now **{new}** (was {previous})"
        fields = [{"name": "Changed By", "value": moderator, "inline": True}]
    else:  # pragma: no cover - every NotificationType is handled above
        title, color = "📬 Notification", COLOR_GRAY
        description = "A new notification"

    return {
        "title": title,
        "description": description,
        "color": color,
        "timestamp": utcnow().isoformat(),
        "fields": fields,
    }


class DiscordNotifier:
    """Post notifications to a Discord webhook."""

    def __init__(
        self,
        webhook_url: str | None,
        *,
        enabled: bool = True,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.webhook_url = webhook_url
        self.enabled = enabled and bool(webhook_url)
        self._timeout = httpx.Timeout(timeout_seconds)
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> DiscordNotifier:
        return cls(
            settings.discord_webhook_url,
            enabled=settings.discord_notifications_enabled,
            timeout_seconds=settings.http_timeout_seconds,
        )

    async def send(self, notification: Notification) -> bool:
        """Deliver ``notification``; return True when Discord accepted it."""
        if not self.enabled or not self.webhook_url:
            return False

        payload = {"embeds": [build_embed(notification)]}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(self.webhook_url, json=payload)
        except httpx.HTTPError as exc:
            logger.error("Discord notification %s failed: %s", notification.type.value, exc)
            return False

        if response.is_error:
            logger.error(
                "Discord webhook rejected %s: %s %s",
                notification.type.value,
                response.status_code,
                response.text,
            )
            return False
        return True
