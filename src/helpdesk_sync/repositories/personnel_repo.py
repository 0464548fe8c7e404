"""Personnel Directory repository."""

from typing import List

from helpdesk_sync.models.ticket import Technician
from helpdesk_sync.repositories.http_client import HelpdeskHttpClient, parse_models


class PersonnelRepository:
    """Look up technicians that tickets can be assigned to."""

    def __init__(self, client: HelpdeskHttpClient):
        self.client = client

    async def list_technicians(self) -> List[Technician]:
        payload = await self.client.call("GET", "/usuarios/tecnicos")
        return parse_models(Technician, payload or [])
