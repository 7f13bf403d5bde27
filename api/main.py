"""Scene API - FastAPI service for the event board.

Serves the map UI: lists filtered events, creates events, toggles interest,
performs geofenced check-ins and renders board snapshots. Every request
builds an Orchestrator for the caller's identity and reloads the board.
"""

import logging
import os
from datetime import date
from functools import lru_cache

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from scene.core.checkin import CheckinOutcome, LocationError, LocationFix
from scene.core.config import Config, validate_config
from scene.core.event import EventDraft, find_event
from scene.core.filters import ALL_CATEGORIES, DateRange, default_date_range
from scene.core.formatter import format_checkin_summary, format_event_popup
from scene.core.session import SessionChannel, UserIdentity
from scene.core.validation import validate_coordinates
from scene.orchestrator import Orchestrator
from scene.shell.auth_client import AuthClient, OAuthCredentials
from scene.shell.config_loader import load_config


log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Scene API",
    description="Map-centric local event board",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# ===== Request Models =====

class EventCreate(BaseModel):
    title: str
    location_name: str
    date: str = Field(description="YYYY-MM-DD")
    time: str = Field(description="HH:MM")
    description: str
    latitude: float
    longitude: float
    category: str | None = None


class CheckinRequest(BaseModel):
    """Location relayed by the browser: coordinates or a sensor error."""
    latitude: float | None = None
    longitude: float | None = None
    accuracy_m: float | None = None
    location_error: LocationError | None = None


# ===== Dependencies =====

class ConfigError(Exception):
    """Configuration has critical errors; the service cannot run with it."""


@lru_cache
def get_config() -> Config:
    """Load and validate configuration once per process.

    Raises:
        ConfigError: If validation finds critical errors
    """
    config = load_config()
    result = validate_config(config)
    for warning in result.warnings:
        logger.warning("Config %s: %s", warning.field, warning.message)
    for error in result.critical_errors:
        logger.error("Config %s: %s", error.field, error.message)
    if not result.valid:
        fields = ", ".join(e.field for e in result.critical_errors)
        raise ConfigError(f"Invalid configuration: {fields}")
    return config


def get_auth_client(config: Config = Depends(get_config)) -> AuthClient:
    return AuthClient(OAuthCredentials(
        client_id=config.oauth.client_id,
        client_secret=config.oauth.client_secret,
        redirect_uri=config.oauth.redirect_uri,
    ))


def _bearer_token(authorization: str | None) -> str | None:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


def get_current_user(
    authorization: str | None = Header(default=None),
    auth_client: AuthClient = Depends(get_auth_client),
) -> UserIdentity | None:
    """Resolve the bearer token to an identity; anonymous if absent."""
    token = _bearer_token(authorization)
    if token is None:
        return None

    identity = auth_client.identify(token)
    if identity is None:
        raise HTTPException(status_code=401, detail="Invalid or expired access token")
    return identity


def get_orchestrator(
    config: Config = Depends(get_config),
    user: UserIdentity | None = Depends(get_current_user),
) -> Orchestrator:
    """Build an orchestrator for the caller and load the board."""
    orchestrator = Orchestrator(config, session=SessionChannel(user))
    result = orchestrator.refresh()
    if not result.success:
        raise HTTPException(status_code=502, detail=result.message)
    return orchestrator


# ===== Helper Functions =====

def _require_user(orchestrator: Orchestrator) -> UserIdentity:
    if orchestrator.current_user is None:
        raise HTTPException(status_code=401, detail="Sign in required")
    return orchestrator.current_user


def _require_event(orchestrator: Orchestrator, event_id: str) -> None:
    if find_event(list(orchestrator.state.events), event_id) is None:
        raise HTTPException(status_code=404, detail=f"Event '{event_id}' not found")


def _build_date_range(
    config: Config,
    today: date,
    from_date: date | None,
    to_date: date | None,
) -> DateRange:
    # Without an end date the window runs from the chosen start date
    default = default_date_range(from_date or today, config.default_window_days)
    try:
        return DateRange(start=default.start, end=to_date or default.end)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _png_response(result) -> Response:
    if not result.success:
        raise HTTPException(status_code=502, detail=result.error or "Failed to render map")
    return Response(content=result.image_bytes, media_type="image/png")


# ===== Public Endpoints =====

@app.exception_handler(ConfigError)
async def config_error_handler(request: Request, exc: ConfigError) -> JSONResponse:
    logger.error("Refusing request: %s", exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/health")
async def health_check(config: Config = Depends(get_config)):
    """Health check endpoint for Cloud Run. Fails while config is invalid."""
    return {"status": "healthy"}


@app.get("/api-events")
def list_events(
    from_date: date | None = Query(default=None, alias="from"),
    to_date: date | None = Query(default=None, alias="to"),
    category: str = Query(default=ALL_CATEGORIES),
    config: Config = Depends(get_config),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """List the events visible for a date window and category."""
    today = date.today()
    date_range = _build_date_range(config, today, from_date, to_date)
    events = orchestrator.visible_events(date_range, category, today)

    return {
        "events": orchestrator.event_popups(events),
        "count": len(events),
        "date_range": {"from": date_range.start.isoformat(), "to": date_range.end.isoformat()},
        "category": category,
        "categories": list(config.categories),
    }


@app.post("/api-events", status_code=201)
def create_event(
    payload: EventCreate,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Create an event at a clicked map position."""
    result = orchestrator.create_event(EventDraft(**payload.model_dump()))

    if result.validation_errors:
        raise HTTPException(
            status_code=422,
            detail=[{"field": e.field, "message": e.message} for e in result.validation_errors],
        )
    if not result.success:
        raise HTTPException(status_code=502, detail=result.message)

    return {
        "message": result.message,
        "event": format_event_popup(result.event, orchestrator.interest_state(result.event.id)),
    }


@app.post("/api-events/{event_id}/interest")
def toggle_interest(
    event_id: str,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Flip the caller's interest in an event."""
    _require_user(orchestrator)
    _require_event(orchestrator, event_id)

    result = orchestrator.toggle_interest(event_id)
    if not result.success:
        raise HTTPException(status_code=502, detail=result.message)

    return {
        "event_id": event_id,
        "interested": result.state.interested,
        "interest_count": result.state.count,
        "message": result.message,
    }


@app.post("/api-events/{event_id}/checkin")
def check_in(
    event_id: str,
    payload: CheckinRequest | None = None,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Check in to an event if the caller is within its geofence.

    The browser relays either its coordinates or the sensor error it got.
    With neither, the position is looked up server-side.
    """
    _require_user(orchestrator)
    _require_event(orchestrator, event_id)

    fix = None
    if payload is not None:
        if payload.location_error is not None:
            fix = LocationFix.failed(payload.location_error)
        elif payload.latitude is not None and payload.longitude is not None:
            errors = validate_coordinates(payload.latitude, payload.longitude, "position")
            if errors:
                raise HTTPException(
                    status_code=422,
                    detail=[{"field": e.field, "message": e.message} for e in errors],
                )
            fix = LocationFix.at(payload.latitude, payload.longitude, payload.accuracy_m)

    result = orchestrator.check_in(event_id, fix)
    if not result.success:
        raise HTTPException(status_code=502, detail=result.message)

    decision = result.decision
    return {
        "event_id": event_id,
        "checked_in": decision.outcome in (CheckinOutcome.CHECKED_IN, CheckinOutcome.ALREADY_CHECKED_IN),
        "outcome": decision.outcome.value,
        "location_error": decision.location_error.value if decision.location_error else None,
        "distance_m": decision.distance_m,
        "message": result.message,
    }


@app.get("/api-checkins")
def list_checkins(orchestrator: Orchestrator = Depends(get_orchestrator)):
    """The caller's check-in history, newest first."""
    _require_user(orchestrator)
    history = orchestrator.checkin_history()
    return {
        "checkins": [format_checkin_summary(s) for s in history],
        "count": len(history),
    }


@app.get("/api-map")
def board_map(
    from_date: date | None = Query(default=None, alias="from"),
    to_date: date | None = Query(default=None, alias="to"),
    category: str = Query(default=ALL_CATEGORIES),
    config: Config = Depends(get_config),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """PNG snapshot of the visible events."""
    today = date.today()
    date_range = _build_date_range(config, today, from_date, to_date)
    events = orchestrator.visible_events(date_range, category, today)
    return _png_response(orchestrator.render_board_map(events))


@app.get("/api-events/{event_id}/map")
def event_map(
    event_id: str,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """PNG snapshot of one event and its check-in geofence."""
    _require_event(orchestrator, event_id)
    return _png_response(orchestrator.render_event_map(event_id))


# ===== Auth Endpoints =====

@app.get("/api-auth/login")
def login(auth_client: AuthClient = Depends(get_auth_client)):
    """Start the OAuth flow."""
    url, state = auth_client.authorization_url()
    return {"authorization_url": url, "state": state}


@app.get("/api-auth/callback")
def auth_callback(
    request: Request,
    state: str = Query(),
    auth_client: AuthClient = Depends(get_auth_client),
):
    """Finish the OAuth flow and return the identity and token."""
    result = auth_client.complete_sign_in(auth_client.callback_url(request.url.query), state)
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error or "Sign-in failed")

    identity = result.identity
    return {
        "user": {
            "user_id": identity.user_id,
            "display_name": identity.display_name,
            "email": identity.email,
            "avatar_url": identity.avatar_url,
        },
        "access_token": result.token.get("access_token"),
        "expires_in": result.token.get("expires_in"),
    }


@app.post("/api-auth/logout")
def logout(
    authorization: str | None = Header(default=None),
    auth_client: AuthClient = Depends(get_auth_client),
):
    """Revoke the caller's token."""
    if not auth_client.sign_out(_bearer_token(authorization)):
        raise HTTPException(status_code=502, detail="Could not sign out. Please try again.")
    return {"message": "Signed out"}
