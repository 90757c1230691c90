from __future__ import annotations

import datetime as dt
import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from . import models
from .allocation import PlannedActivity
from .config import settings
from .database import db_session, engine, get_db
from .logger import setup_logging
from .middleware import NO_STORE_HEADERS, RequestLoggingMiddleware
from .schemas import (
    AuthCheckResponse,
    AuthResponse,
    EntryListResponse,
    EntryResponse,
    EntrySaveRequest,
    LoginRequest,
    RegisterRequest,
    ReportFormat,
    TrainingProfessionListResponse,
    UserSettingsResponse,
    UserSettingsUpdateRequest,
    UserSummary,
    VacationCreateRequest,
    VacationResponse,
)
from .services import (
    create_vacation,
    delete_vacation,
    generate_report,
    list_entries_for_month,
    list_vacations,
    login_user,
    migrate_legacy_activities,
    register_user,
    resolve_token,
    save_entry,
    search_training_professions,
    seed_training_professions,
    serialize_entry,
    update_user_settings,
)
from .token_utils import revoke_access_token

setup_logging(settings)
logger = logging.getLogger(__name__)

models.Base.metadata.create_all(bind=engine)
with db_session() as bootstrap_session:
    seeded = seed_training_professions(bootstrap_session)
    if seeded:
        logger.info("Seeded %d training professions", seeded)
    migrate_legacy_activities(bootstrap_session)

app = FastAPI(title=settings.app_name)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://127.0.0.1:3000", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> models.AccessToken:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    token = resolve_token(db, credentials.credentials)
    if token is None:
        logger.info("Rejected invalid or expired token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return token


def get_current_user(token: models.AccessToken = Depends(get_current_token)) -> models.User:
    if token.user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return token.user


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {
        "status": "ok",
        "pdf_engine": "reportlab",
        "timestamp": dt.datetime.now(dt.timezone.utc).isoformat(),
    }


@app.post("/auth/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def auth_register(payload: RegisterRequest, db: Session = Depends(get_db)) -> AuthResponse:
    user, token, token_value = register_user(db, payload.email, payload.password)
    return AuthResponse(
        user=UserSummary.model_validate(user),
        token=token_value,
        expires_at=token.expires_at,
        requires_setup=True,
    )


@app.post("/auth/login", response_model=AuthResponse)
def auth_login(payload: LoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    user, token, token_value = login_user(db, payload.email, payload.password)
    return AuthResponse(user=UserSummary.model_validate(user), token=token_value, expires_at=token.expires_at)


@app.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
def auth_logout(token: models.AccessToken = Depends(get_current_token), db: Session = Depends(get_db)) -> Response:
    revoke_access_token(db, token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/auth/check", response_model=AuthCheckResponse)
def auth_check(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthCheckResponse:
    token = resolve_token(db, credentials.credentials if credentials else None)
    if token is None:
        return AuthCheckResponse(authenticated=False)
    return AuthCheckResponse(authenticated=True, user_id=token.user_id)


@app.get("/user/settings", response_model=UserSettingsResponse)
def read_user_settings(user: models.User = Depends(get_current_user)) -> UserSettingsResponse:
    return UserSettingsResponse.model_validate(user)


@app.put("/user/settings", response_model=UserSettingsResponse)
def write_user_settings(
    payload: UserSettingsUpdateRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserSettingsResponse:
    updated = update_user_settings(db, user, payload.model_dump(exclude_unset=True))
    return UserSettingsResponse.model_validate(updated)


@app.get("/user/vacations", response_model=list[VacationResponse])
def get_vacations(user: models.User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[VacationResponse]:
    return list_vacations(db, user)


@app.post("/user/vacations", response_model=VacationResponse, status_code=status.HTTP_201_CREATED)
def add_vacation(
    payload: VacationCreateRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> VacationResponse:
    return create_vacation(db, user, payload.start_date, payload.end_date, payload.description)


@app.delete("/user/vacations/{vacation_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_vacation(
    vacation_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    delete_vacation(db, user, vacation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/training-professions", response_model=TrainingProfessionListResponse)
def get_training_professions(
    search: Optional[str] = None,
    id: Optional[int] = None,
    db: Session = Depends(get_db),
) -> TrainingProfessionListResponse:
    return TrainingProfessionListResponse(professions=search_training_professions(db, search, id))


@app.get("/entries", response_model=EntryListResponse)
def get_entries(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=1),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EntryListResponse:
    entries = list_entries_for_month(db, user, month, year)
    return EntryListResponse(entries=[serialize_entry(entry) for entry in entries])


@app.post("/entries", response_model=EntryResponse)
def post_entry(
    payload: EntrySaveRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EntryResponse:
    planned = [PlannedActivity(item.description, item.duration) for item in payload.activities]
    entry = save_entry(db, user, payload.date, planned, payload.is_completed)
    return serialize_entry(entry)


def _report_response(
    db: Session,
    user: models.User,
    export_format: str,
    from_date: Optional[dt.date],
    to_date: Optional[dt.date],
) -> Response:
    rendered = generate_report(db, user, export_format, from_date, to_date)
    headers = dict(NO_STORE_HEADERS)
    headers["Content-Disposition"] = f'attachment; filename="{rendered.filename}"'
    return Response(content=rendered.content, media_type=rendered.media_type, headers=headers)


@app.get("/report")
def download_report(
    format: ReportFormat = "pdf",
    from_date: Optional[dt.date] = None,
    to_date: Optional[dt.date] = None,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    return _report_response(db, user, format, from_date, to_date)


@app.get("/pdf")
def download_pdf(user: models.User = Depends(get_current_user), db: Session = Depends(get_db)) -> Response:
    return _report_response(db, user, "pdf", None, None)
