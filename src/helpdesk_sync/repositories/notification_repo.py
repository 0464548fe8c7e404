"""Notification Service repository."""

from typing import Any

from helpdesk_sync.models.notification import NotificationPage
from helpdesk_sync.repositories.http_client import HelpdeskHttpClient, parse_model
from helpdesk_sync.utils.error_handling import NetworkError


class NotificationRepository:
    """Unread count, listing and mark-read endpoints."""

    def __init__(self, client: HelpdeskHttpClient):
        self.client = client

    async def unread_count(self) -> int:
        payload: Any = await self.client.call("GET", "/notificaciones/unread-count")
        try:
            return int(payload)
        except (TypeError, ValueError) as exc:
            raise NetworkError(f"Unexpected unread count payload: {payload!r}") from exc

    async def list_page(
        self, page: int = 0, size: int = 10, unread_only: bool = False
    ) -> NotificationPage:
        payload = await self.client.call(
            "GET",
            "/notificaciones",
            params={"page": page, "size": size, "unread": str(unread_only).lower()},
        )
        return parse_model(NotificationPage, payload or {})

    async def mark_read(self, notification_id: int) -> None:
        await self.client.call("PUT", f"/notificaciones/{notification_id}/leer")

    async def mark_all_read(self) -> None:
        await self.client.call("PUT", "/notificaciones/leer-todas")
