"""
CLI utility to generate JWT tokens for testing the Todo List service.

In a real deployment, tokens are issued by the organization's identity
provider. For local development this script plays that role: it mints
tokens carrying the claims the service reads (tenant, scopes, roles,
username), signed with the service's development secret.

Usage examples:

    # Reader in tenant "contoso"
    python -m scripts.generate_token --user alice --tenant contoso --roles Reader --scope ToDo.Read

    # Writer with both scopes
    python -m scripts.generate_token --user bob --tenant contoso --roles Writer --scope ToDo.Read ToDo.Write

    # Admin, token valid for 2 hours
    python -m scripts.generate_token --user carol --tenant contoso --roles Admin \\
        --scope ToDo.Read ToDo.Write --exp-hours 2

The generated token can be used with curl:

    curl http://localhost:8080/api/todolist -H "Authorization: Bearer <token>"
"""

import argparse
import datetime
import uuid

import jwt


def generate_token(
    username: str,
    tenant_id: str,
    scopes: list[str],
    roles: list[str],
    secret: str,
    algorithm: str = "HS256",
    exp_hours: float = 8.0,
    subject: str | None = None,
) -> str:
    """
    Generate a signed JWT token with the given claims.

    Args:
        username: The "preferred_username" claim (Todo owner name)
        tenant_id: The "tid" claim
        scopes: Delegated scopes, joined into the space-delimited "scp" claim
        roles: App roles for the "roles" claim
        secret: The signing key (must match the server's TODO_JWT_SECRET_KEY)
        algorithm: JWT signing algorithm (default: HS256)
        exp_hours: Hours until expiration (negative = already expired)
        subject: The "sub" claim; a random id when omitted

    Returns:
        The encoded JWT token string
    """
    now = datetime.datetime.now(datetime.timezone.utc)

    payload = {
        "sub": subject or str(uuid.uuid4()),
        "preferred_username": username,
        "tid": tenant_id,
        "scp": " ".join(scopes),
        "roles": roles,
        "iat": now,
        "exp": now + datetime.timedelta(hours=exp_hours),
    }

    return jwt.encode(payload, secret, algorithm=algorithm)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Generate JWT tokens for the Todo List service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Reader:
    %(prog)s --user alice --tenant contoso --roles Reader --scope ToDo.Read

  Writer:
    %(prog)s --user bob --tenant contoso --roles Writer --scope ToDo.Read ToDo.Write

  Expired token (for testing):
    %(prog)s --user alice --tenant contoso --roles Reader --scope ToDo.Read --exp-hours -1
        """,
    )

    parser.add_argument("--user", required=True, help="Username (preferred_username claim)")
    parser.add_argument("--tenant", required=True, help="Tenant id (tid claim)")
    parser.add_argument(
        "--scope",
        nargs="+",
        default=[],
        help="Scopes to grant (e.g., ToDo.Read ToDo.Write)",
    )
    parser.add_argument(
        "--roles",
        nargs="+",
        default=[],
        choices=["Reader", "Writer", "Admin"],
        help="App roles to grant",
    )
    parser.add_argument(
        "--secret",
        default="dev-secret-change-me",
        help="JWT signing secret (must match server's TODO_JWT_SECRET_KEY)",
    )
    parser.add_argument("--algorithm", default="HS256", help="JWT signing algorithm (default: HS256)")
    parser.add_argument(
        "--exp-hours",
        type=float,
        default=8.0,
        help="Hours until token expires (negative = already expired, default: 8)",
    )

    args = parser.parse_args()

    token = generate_token(
        username=args.user,
        tenant_id=args.tenant,
        scopes=args.scope,
        roles=args.roles,
        secret=args.secret,
        algorithm=args.algorithm,
        exp_hours=args.exp_hours,
    )

    print(f"User:       {args.user}")
    print(f"Tenant:     {args.tenant}")
    print(f"Roles:      {args.roles}")
    print(f"Scopes:     {args.scope}")
    print(f"Algorithm:  {args.algorithm}")
    print()
    print(f"Token: {token}")
    print()
    print("Usage with curl:")
    print(f'  curl http://localhost:8080/api/todolist -H "Authorization: Bearer {token}"')


if __name__ == "__main__":
    main()
