"""
Async client for the Todo List service.

TodoListClient is what the browser-facing application uses to talk to the
backend on behalf of a signed-in user. It repeats the role checks of the
backend before sending anything, so a user without the right role gets a
local 401 instead of a round trip. The user's claims are re-read for every
call; on edit, the tenant id is taken from those claims and stamped onto the
outgoing Todo.

Usage:
    async with httpx.AsyncClient(base_url="http://localhost:8080") as http:
        client = TodoListClient(http, access_token=token, principal=principal)
        todos = await client.index()
"""

import logging

import httpx

from todolist.auth import TokenInfo
from todolist.identity import IdentityContext, extract_identity
from todolist.policies import POLICIES, READERS_POLICY, WRITERS_POLICY
from todolist.store import Todo

logger = logging.getLogger("todolist-client")

API_PATH = "/api/todolist"


class TodoClientError(Exception):
    """
    Raised when a Todo call is refused locally or fails at the backend.

    Attributes:
        message: Human-readable error description
        status_code: HTTP status of the failure (401 for local role checks)
    """

    def __init__(self, message: str, status_code: int):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _todo_from_json(data: dict) -> Todo:
    return Todo(
        id=data["id"],
        title=data["title"],
        owner=data["owner"],
        tenant_id=data["tenantId"],
    )


class TodoListClient:
    """Calls the Todo List API as one signed-in user."""

    def __init__(self, http: httpx.AsyncClient, access_token: str, principal: TokenInfo):
        self._http = http
        self._access_token = access_token
        self._principal = principal

    def _identity(self) -> IdentityContext:
        return extract_identity(self._principal)

    def _require_policy(self, policy: str, action: str) -> IdentityContext:
        identity = self._identity()
        if not identity.roles & POLICIES[policy]:
            logger.warning(
                "Client-side policy check failed",
                extra={
                    "auth_data": {
                        "subject": identity.username,
                        "action": action,
                        "policy": policy,
                        "decision": "denied",
                    }
                },
            )
            raise TodoClientError(f"'{action}' requires the {policy} policy", 401)
        return identity

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self._access_token}"}
        return await self._http.request(method, url, headers=headers, **kwargs)

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        raise TodoClientError(
            f"'{action}' failed with HTTP {response.status_code}",
            response.status_code,
        )

    async def index(self) -> list[Todo]:
        """All Todos visible to the user."""
        self._require_policy(READERS_POLICY, "index")
        response = await self._send("GET", API_PATH)
        self._raise_for_status(response, "index")
        return [_todo_from_json(item) for item in response.json()]

    async def details(self, todo_id: int) -> Todo | None:
        self._require_policy(READERS_POLICY, "details")
        response = await self._send("GET", f"{API_PATH}/{todo_id}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response, "details")
        return _todo_from_json(response.json())

    async def create(self, title: str, owner: str | None = None) -> Todo:
        """
        Create a Todo. The owner defaults to the signed-in user; the
        backend only honors a different owner for Admins.
        """
        identity = self._require_policy(WRITERS_POLICY, "create")
        body = {"title": title, "owner": owner or identity.username}
        response = await self._send("POST", API_PATH, json=body)
        self._raise_for_status(response, "create")
        return _todo_from_json(response.json())

    async def edit(self, todo: Todo) -> Todo | None:
        """Send an edited Todo, stamped with the tenant from the current claims."""
        identity = self._require_policy(WRITERS_POLICY, "edit")
        body = {
            "id": todo.id,
            "title": todo.title,
            "owner": todo.owner,
            "tenantId": identity.tenant_id,
        }
        response = await self._send("PATCH", f"{API_PATH}/{todo.id}", json=body)
        if response.status_code == 404:
            return None
        self._raise_for_status(response, "edit")
        return _todo_from_json(response.json())

    async def delete(self, todo_id: int) -> None:
        self._require_policy(WRITERS_POLICY, "delete")
        response = await self._send("DELETE", f"{API_PATH}/{todo_id}")
        self._raise_for_status(response, "delete")
