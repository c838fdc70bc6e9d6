"""HTTP client for the Problem Box REST API."""

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional

import httpx

from ..exceptions import RemoteError
from ..schemas.library import (
    AffectedResponse,
    BootstrapResponse,
    FavoritesResponse,
    FolderCreated,
    HardDeleteResponse,
)
from ..schemas.tree import TreeNode
from .config import ClientSettings

logger = logging.getLogger(__name__)


class ProblemBoxClient:
    """Async client wrapping the Problem Box backend.

    Only the bootstrap GET is retried (connection errors, timeouts and 5xx,
    exponential backoff). Mutations get exactly one attempt. Every failure
    surfaces as ``RemoteError``.

    Configuration comes from ``ClientSettings`` (``PROBLEMBOX_API_URL``,
    ``PROBLEMBOX_API_TOKEN``, ``PROBLEMBOX_API_TIMEOUT`` ...). Tests pass an
    ``httpx.MockTransport`` as *transport*.
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or ClientSettings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "ProblemBoxClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers: Dict[str, str] = {}
            if self.settings.api_token:
                headers["Authorization"] = f"Bearer {self.settings.api_token}"
            self._client = httpx.AsyncClient(
                base_url=self.settings.api_url,
                headers=headers,
                timeout=self.settings.api_timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """One attempt. Transport failures and non-2xx responses become RemoteError."""
        client = self._get_client()
        headers = {"X-Request-ID": uuid.uuid4().hex[:16]}
        try:
            resp = await client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as exc:
            raise RemoteError(f"{method} {path} timed out", status_code=504, path=path) from exc
        except httpx.HTTPError as exc:
            raise RemoteError(f"{method} {path} failed: {exc}", status_code=502, path=path) from exc

        if resp.is_success:
            return resp

        message = f"{method} {path} returned {resp.status_code}"
        try:
            body = resp.json()
            if isinstance(body, dict) and body.get("message"):
                message = f"{message}: {body['message']}"
        except ValueError:
            pass
        raise RemoteError(message, status_code=resp.status_code, path=path)

    async def _request_with_retry(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Retry connection errors, timeouts and 5xx with exponential backoff.

        Client errors (4xx) are raised immediately.
        """
        attempts = self.settings.max_retries
        last_exc: Optional[RemoteError] = None

        for attempt in range(attempts):
            try:
                return await self._request(method, path, **kwargs)
            except RemoteError as exc:
                if exc.status_code < 500:
                    raise
                last_exc = exc

            if attempt < attempts - 1:
                delay = self.settings.retry_base_delay * (2 ** attempt)
                logger.warning(
                    "Request %s %s failed (attempt %d/%d), retrying in %.1fs: %s",
                    method, path, attempt + 1, attempts, delay, last_exc,
                )
                await asyncio.sleep(delay)

        raise last_exc  # type: ignore[misc]

    @staticmethod
    def _parse(model, resp: httpx.Response, path: str):
        try:
            return model.model_validate(resp.json())
        except ValueError as exc:
            raise RemoteError(f"Malformed response from {path}: {exc}", path=path) from exc

    # --- Snapshot ---

    async def bootstrap(self) -> BootstrapResponse:
        """Full snapshot. Maps to GET /api/bootstrap."""
        resp = await self._request_with_retry("GET", "/api/bootstrap")
        return self._parse(BootstrapResponse, resp, "/api/bootstrap")

    # --- Tree mutations ---

    async def create_folder(self, title: str, parent_id: Optional[str] = None) -> TreeNode:
        """Maps to POST /api/folders; returns the server-created node."""
        resp = await self._request(
            "POST", "/api/folders", json={"title": title, "parentId": parent_id},
        )
        return self._parse(FolderCreated, resp, "/api/folders").node

    async def soft_delete(self, node_id: str) -> List[str]:
        """Maps to DELETE /api/nodes/{id}; returns the affected ids."""
        path = f"/api/nodes/{node_id}"
        resp = await self._request("DELETE", path)
        return self._parse(AffectedResponse, resp, path).affected_ids

    async def soft_delete_batch(self, node_ids: List[str]) -> List[str]:
        """Maps to POST /api/nodes/batch-delete."""
        resp = await self._request(
            "POST", "/api/nodes/batch-delete", json={"nodeIds": list(node_ids)},
        )
        return self._parse(AffectedResponse, resp, "/api/nodes/batch-delete").affected_ids

    async def restore(self, node_id: str) -> None:
        """Maps to POST /api/nodes/restore."""
        await self._request("POST", "/api/nodes/restore", json={"nodeId": node_id})

    async def hard_delete(self, node_id: str) -> HardDeleteResponse:
        """Maps to POST /api/nodes/hard-delete."""
        resp = await self._request("POST", "/api/nodes/hard-delete", json={"nodeId": node_id})
        return self._parse(HardDeleteResponse, resp, "/api/nodes/hard-delete")

    async def move_problem(self, problem_id: str, target_folder_id: Optional[str] = None) -> None:
        """Maps to POST /api/nodes/move-problem."""
        await self._request(
            "POST",
            "/api/nodes/move-problem",
            json={"problemId": problem_id, "targetFolderId": target_folder_id},
        )

    async def move_node(self, node_id: str, target_folder_id: Optional[str] = None) -> None:
        """Maps to POST /api/nodes/move-node."""
        await self._request(
            "POST",
            "/api/nodes/move-node",
            json={"nodeId": node_id, "targetFolderId": target_folder_id},
        )

    async def reorder(self, ordered_ids: List[str]) -> None:
        """Maps to POST /api/nodes/reorder."""
        await self._request("POST", "/api/nodes/reorder", json={"orderedIds": list(ordered_ids)})

    # --- Problems ---

    async def delete_problem(self, problem_id: str) -> None:
        """Maps to DELETE /api/problems/{id}."""
        await self._request("DELETE", f"/api/problems/{problem_id}")

    async def delete_problems_batch(self, problem_ids: List[str]) -> None:
        """Maps to POST /api/problems/batch-delete."""
        await self._request(
            "POST", "/api/problems/batch-delete", json={"problemIds": list(problem_ids)},
        )

    async def toggle_favorite(self, problem_id: str) -> List[str]:
        """Maps to POST /api/favorites/toggle; returns the new favourite list."""
        resp = await self._request("POST", "/api/favorites/toggle", json={"problemId": problem_id})
        return self._parse(FavoritesResponse, resp, "/api/favorites/toggle").favorites
