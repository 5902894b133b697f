"""HTTP implementation of the remote sync collaborator."""

from typing import Any

import httpx

from ..errors import SyncTransportError
from ..log import get_logger
from ..models import ChatMessage, Program, WorkoutLog
from .base import SyncSnapshot

logger = get_logger(__name__)


class HttpSyncClient:
    """Client for a liftlog sync server.

    Every request carries the ``X-Device-Id`` header, which is the only
    identity the server knows about.
    """

    def __init__(
        self,
        base_url: str,
        device_id: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.device_id = device_id
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"X-Device-Id": device_id},
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Make a request and return the decoded JSON body."""
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise SyncTransportError(f"{method} {path} failed: {e}") from e

        if response.status_code != 200:
            raise SyncTransportError(
                f"{method} {path} returned {response.status_code}: {response.text}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise SyncTransportError(f"{method} {path} returned invalid JSON") from e

    async def is_available(self) -> bool:
        try:
            health = await self._request("GET", "/api/health")
        except SyncTransportError as e:
            logger.info("sync server unreachable", url=self.base_url, error=str(e))
            return False
        return bool((health.get("services") or {}).get("database"))

    async def fetch_all(self) -> SyncSnapshot:
        data = await self._request("GET", "/api/sync/all")
        try:
            return SyncSnapshot.from_wire(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SyncTransportError(f"Malformed sync payload: {e}") from e

    async def push_all(self, snapshot: SyncSnapshot) -> None:
        await self._request("POST", "/api/sync/all", json=snapshot.to_wire())

    async def upsert_program(self, program: Program) -> None:
        await self._request("POST", "/api/sync/programs", json={"program": program.to_dict()})

    async def delete_program(self, program_id: str) -> None:
        await self._request("DELETE", f"/api/sync/programs/{program_id}")

    async def set_active_program(self, program_id: str | None) -> None:
        await self._request("POST", "/api/sync/programs/active", json={"programId": program_id})

    async def upsert_workout(self, log: WorkoutLog) -> None:
        await self._request("POST", "/api/sync/workouts", json={"workout": log.to_dict()})

    async def delete_workout(self, log_id: str) -> None:
        await self._request("DELETE", f"/api/sync/workouts/{log_id}")

    async def push_chat_message(self, message: ChatMessage) -> None:
        await self._request("POST", "/api/sync/chat", json=message.to_dict())

    async def clear_chat(self) -> None:
        await self._request("DELETE", "/api/sync/chat")

    async def close(self) -> None:
        await self.client.aclose()
