"""
Shared test fixtures for the Todo List test suite.

Key fixtures:
- make_token: A factory function to generate JWT tokens with any claims
- make_auth_header: Same, returning a ready "Bearer <token>" string
- make_identity: A factory for IdentityContext values (evaluator unit tests)
- store / app / api_client: A fresh TodoStore, the Starlette app built
  around it, and an httpx.AsyncClient wired to the app in-memory

Testing approach:
- test_auth.py / test_identity.py: token validation and claim parsing
- test_access.py / test_store.py: the evaluator and the store in isolation
- test_api.py: full HTTP requests through the ASGI app (no network needed)
- test_client.py: TodoListClient against the same in-memory app
"""

import datetime

import httpx
import jwt
import pytest

from todolist.config import settings
from todolist.identity import IdentityContext, Role
from todolist.server import create_app
from todolist.store import TodoStore

# Must match settings.jwt_secret_key so that test tokens validate.
TEST_SECRET = settings.jwt_secret_key
TEST_ALGORITHM = settings.jwt_algorithm


# ---------------------------------------------------------------------------
# Token factory fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def make_token():
    """
    Factory fixture to generate JWT tokens for testing.

    Usage in tests:
        def test_something(make_token):
            token = make_token(username="alice", roles=["Reader"], scopes=["ToDo.Read"])
    """

    def _make_token(
        username: str = "alice",
        tenant: str | None = "t1",
        scopes: list[str] | None = None,
        roles: list[str] | None = None,
        sub: str | None = None,
        secret: str = TEST_SECRET,
        algorithm: str = TEST_ALGORITHM,
        exp_hours: float = 1.0,
        extra_claims: dict | None = None,
        include_exp: bool = True,
        include_sub: bool = True,
    ) -> str:
        """
        Generate a signed JWT token with the given claims.

        Args:
            username: preferred_username claim
            tenant: tid claim (None omits it)
            scopes: Scopes joined into the scp claim (None omits it)
            roles: roles claim (None omits it)
            sub: Subject claim (defaults to "sub-<username>")
            exp_hours: Hours until expiration (negative = already expired)
            extra_claims: Additional claims merged into the payload last
        """
        now = datetime.datetime.now(datetime.timezone.utc)
        payload: dict = {"preferred_username": username, "iat": now}

        if include_sub:
            payload["sub"] = sub or f"sub-{username}"
        if tenant is not None:
            payload["tid"] = tenant
        if scopes is not None:
            payload["scp"] = " ".join(scopes)
        if roles is not None:
            payload["roles"] = roles
        if include_exp:
            payload["exp"] = now + datetime.timedelta(hours=exp_hours)
        if extra_claims:
            payload.update(extra_claims)

        return jwt.encode(payload, secret, algorithm=algorithm)

    return _make_token


@pytest.fixture
def make_auth_header(make_token):
    """Convenience fixture that returns a full "Bearer <token>" string."""

    def _make_auth_header(**kwargs) -> str:
        return f"Bearer {make_token(**kwargs)}"

    return _make_auth_header


@pytest.fixture
def auth_headers(make_auth_header):
    """Request headers dict for httpx calls."""

    def _auth_headers(**kwargs) -> dict[str, str]:
        return {"Authorization": make_auth_header(**kwargs)}

    return _auth_headers


@pytest.fixture
def make_identity():
    def _make_identity(
        username: str = "alice",
        tenant_id: str = "t1",
        roles: tuple[Role, ...] = (Role.READER,),
        scopes: tuple[str, ...] = ("ToDo.Read",),
    ) -> IdentityContext:
        return IdentityContext(
            username=username,
            tenant_id=tenant_id,
            roles=frozenset(roles),
            scopes=frozenset(scopes),
        )

    return _make_identity


# ---------------------------------------------------------------------------
# Application fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def store():
    return TodoStore()


@pytest.fixture
def app(store):
    return create_app(store)


@pytest.fixture
async def api_client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
