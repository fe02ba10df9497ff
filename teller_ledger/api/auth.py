"""
Caller authentication.

Two kinds of caller reach the bank endpoint:

- Tellers present the shared branch code in the X-Teller-Code
  header (or the tellerCode query parameter).
- Customers present a bearer token issued by the identity
  provider. The token is verified with the shared HS256 secret and
  the customer is identified by the email inside it.
"""

import hmac

import jwt
from fastapi import Request

from teller_ledger.config import get_settings
from teller_ledger.exceptions import AuthenticationError, BadTellerCode
from teller_ledger.schemas.actions import CUSTOMER, TELLER
from teller_ledger.services.action_dispatcher import Actor

TELLER_CODE_HEADER = "X-Teller-Code"
TELLER_CODE_QUERY = "tellerCode"


def authenticate_teller(request: Request) -> Actor:
    expected = get_settings().TELLER_CODE
    supplied = (
        request.headers.get(TELLER_CODE_HEADER)
        or request.query_params.get(TELLER_CODE_QUERY)
        or ""
    )
    if not expected or not hmac.compare_digest(
        supplied.encode("utf-8"), expected.encode("utf-8")
    ):
        raise BadTellerCode("Teller code missing or incorrect")
    return Actor(role=TELLER)


def email_from_claims(claims: dict) -> str | None:
    """Tokens carry the email at the top level or in user_metadata."""
    email = claims.get("email")
    if not email:
        email = (claims.get("user_metadata") or {}).get("email")
    if not email or not isinstance(email, str):
        return None
    return email.strip().lower() or None


def authenticate_customer(request: Request) -> Actor:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Bearer token required")

    secret = get_settings().JWT_SECRET
    if not secret:
        raise AuthenticationError("Token verification is not configured")

    try:
        claims = jwt.decode(
            token.strip(),
            secret,
            algorithms=["HS256"],
            options={"verify_aud": False},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")

    email = email_from_claims(claims)
    if not email:
        raise AuthenticationError("Token carries no email")
    return Actor(role=CUSTOMER, email=email)


def authenticate(request: Request, role: str) -> Actor:
    if role == TELLER:
        return authenticate_teller(request)
    return authenticate_customer(request)
