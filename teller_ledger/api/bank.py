"""
Bank action endpoint.

One endpoint serves every teller and customer action:

    POST /api/bank   {"action": "<name>", "payload": {...}}

The route only handles HTTP concerns. In order it:
1. parses the body (InvalidJson)
2. looks up the action (UnknownAction)
3. authenticates the caller for the action's role
4. validates the payload (ValidationError)
5. hands the typed request to the ActionDispatcher

Every failure is returned in the same envelope:

    {"ok": false, "error": "<code>", "detail": "...", "extra": {...}}
"""

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from teller_ledger.api.auth import authenticate
from teller_ledger.exceptions import (
    InputValidationError,
    InternalError,
    InvalidJson,
    LedgerError,
    UnknownAction,
)
from teller_ledger.logging_config import get_logger
from teller_ledger.models.base import get_db
from teller_ledger.schemas.actions import ACTIONS, parse_action
from teller_ledger.services.action_dispatcher import ActionDispatcher
from teller_ledger.services.identity_client import IdentityAdminClient

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Bank"])

NO_STORE = {"Cache-Control": "no-store"}


def get_identity_client() -> IdentityAdminClient | None:
    """
    Identity provider client for enrollment actions.

    None means "build one from settings when first needed", so
    requests that never touch the provider never need its config.
    Tests override this dependency with a mock-transport client.
    """
    return None


async def read_body(request: Request) -> bytes:
    return await request.body()


def error_response(error: LedgerError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(),
        headers=NO_STORE,
    )


def parse_body(raw: bytes) -> dict:
    try:
        body = json.loads(raw or b"null")
    except (ValueError, UnicodeDecodeError):
        raise InvalidJson("Request body is not valid JSON")
    if not isinstance(body, dict):
        raise InvalidJson("Request body must be a JSON object")
    return body


def validation_errors(error: ValidationError, action: str) -> list[dict]:
    """Flatten Pydantic errors to JSON-safe field/message pairs."""
    errors = []
    for err in error.errors(include_url=False):
        loc = list(err["loc"])
        # Discriminated unions prefix the location with the tag
        if loc and loc[0] == action:
            loc = loc[1:]
        errors.append({
            "field": ".".join(str(part) for part in loc),
            "message": err["msg"],
            "type": err["type"],
        })
    return errors


@router.get("/bank")
def ping(request: Request):
    """Liveness probe: ``GET /api/bank?ping=1`` answers ``pong``."""
    if request.query_params.get("ping") == "1":
        return PlainTextResponse("pong", headers=NO_STORE)
    return JSONResponse(
        status_code=405,
        content={"ok": False, "error": "MethodNotAllowed", "detail": "POST only"},
        headers=NO_STORE,
    )


@router.post("/bank")
def run_action(
    request: Request,
    raw: bytes = Depends(read_body),
    db: Session = Depends(get_db),
    identity_client: IdentityAdminClient | None = Depends(get_identity_client),
):
    """
    Run one action.

    Authentication happens before payload validation, so an
    unauthenticated caller learns nothing about payload shapes.
    """
    try:
        body = parse_body(raw)

        action = body.get("action")
        variant = ACTIONS.get(action) if isinstance(action, str) else None
        if variant is None:
            raise UnknownAction(f"Unknown action: {action}")

        actor = authenticate(request, variant.role)

        if body.get("payload") is None:
            body = {**body, "payload": {}}
        try:
            action_request = parse_action(body)
        except ValidationError as e:
            raise InputValidationError(
                "Invalid payload", errors=validation_errors(e, action)
            )

        dispatcher = ActionDispatcher(db, identity_client=identity_client)
        result = dispatcher.dispatch(action_request, actor)
    except LedgerError as e:
        return error_response(e)
    except Exception:
        logger.exception("unexpected error handling bank action")
        db.rollback()
        return error_response(InternalError("Unexpected server error"))

    return JSONResponse(content=result, headers=NO_STORE)
