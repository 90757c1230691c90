from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from .allocation import PlannedActivity, allocate, total_hours
from .config import settings
from .models import WEEKDAY_NAMES, AccessToken, ActivityEntry, Entry, TrainingProfession, User, VacationPeriod
from .report import ReportData, UserInfo, format_date, month_label, render_report_pdf, render_report_xlsx
from .token_utils import create_access_token, hash_password, verify_access_token, verify_password
from .utils import decode_legacy_activities, normalize_email
from .weeks import DatedContent, DayConfig, WeekdayConfig, build_weeks, first_monday_on_or_before, format_activity_content
from .weeks import VacationPeriod as VacationSpan

logger = logging.getLogger(__name__)

DEFAULT_TRAINING_PROFESSIONS: Tuple[Tuple[str, str], ...] = (
    ("Fachinformatiker für Anwendungsentwicklung", "IT"),
    ("Fachinformatiker für Systemintegration", "IT"),
    ("Fachinformatiker für Daten- und Prozessanalyse", "IT"),
    ("Fachinformatiker für digitale Vernetzung", "IT"),
    ("IT-Systemelektroniker", "IT"),
    ("Kaufmann für Digitalisierungsmanagement", "IT"),
    ("Kaufmann für IT-System-Management", "IT"),
    ("Industriekaufmann", "Kaufmännisch"),
    ("Kaufmann für Büromanagement", "Kaufmännisch"),
    ("Mechatroniker", "Technik"),
    ("Elektroniker für Betriebstechnik", "Technik"),
)

PROFESSION_SEARCH_LIMIT = 50

REPORT_MEDIA_TYPES: Dict[str, str] = {
    "pdf": "application/pdf",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


@dataclass(frozen=True)
class RenderedReport:
    filename: str
    media_type: str
    content: bytes


# --- Accounts -----------------------------------------------------------------


def register_user(db: Session, email: str, password: str) -> Tuple[User, AccessToken, str]:
    normalized = normalize_email(email)
    if not normalized:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email und Passwort sind erforderlich")
    existing = db.query(User).filter(User.email == normalized).one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Benutzer existiert bereits")
    user = User(email=normalized, password_hash=hash_password(password), name=normalized.split("@")[0])
    db.add(user)
    db.commit()
    db.refresh(user)
    token, token_value = create_access_token(db, user)
    logger.info("Registered user %s", user.id)
    return user, token, token_value


def login_user(db: Session, email: str, password: str) -> Tuple[User, AccessToken, str]:
    normalized = normalize_email(email)
    user = db.query(User).filter(User.email == normalized).one_or_none() if normalized else None
    if not user or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for %s", normalized or "<empty>")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token, token_value = create_access_token(db, user)
    logger.info("User %s logged in", user.id)
    return user, token, token_value


def resolve_token(db: Session, token_value: Optional[str]) -> Optional[AccessToken]:
    if not token_value:
        return None
    return verify_access_token(db, token_value)


# --- Settings -----------------------------------------------------------------


def weekday_config_for(user: User) -> WeekdayConfig:
    days = [
        DayConfig(
            enabled=bool(getattr(user, f"{name}_enabled")),
            hours=float(getattr(user, f"{name}_hours") or 0.0),
        )
        for name in WEEKDAY_NAMES
    ]
    return WeekdayConfig(*days)


def update_user_settings(db: Session, user: User, updates: Dict[str, Any]) -> User:
    profession_id = updates.get("training_profession_id")
    if profession_id is not None and db.get(TrainingProfession, profession_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ausbildungsberuf nicht gefunden")
    for key, value in updates.items():
        setattr(user, key, value)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Updated settings for user %s", user.id)
    return user


def seed_training_professions(db: Session) -> int:
    if db.query(TrainingProfession).count():
        return 0
    for name, category in DEFAULT_TRAINING_PROFESSIONS:
        db.add(TrainingProfession(name=name, category=category))
    db.commit()
    return len(DEFAULT_TRAINING_PROFESSIONS)


def search_training_professions(
    db: Session, search: Optional[str], profession_id: Optional[int]
) -> List[TrainingProfession]:
    if profession_id is not None:
        profession = db.get(TrainingProfession, profession_id)
        return [profession] if profession else []
    query = db.query(TrainingProfession)
    if search:
        query = query.filter(func.lower(TrainingProfession.name).contains(search.strip().lower()))
    return query.order_by(TrainingProfession.name.asc()).limit(PROFESSION_SEARCH_LIMIT).all()


# --- Vacations ----------------------------------------------------------------


def list_vacations(db: Session, user: User) -> List[VacationPeriod]:
    return (
        db.query(VacationPeriod)
        .filter(VacationPeriod.user_id == user.id)
        .order_by(VacationPeriod.start_date.asc())
        .all()
    )


def create_vacation(
    db: Session,
    user: User,
    start_date: dt.date,
    end_date: dt.date,
    description: Optional[str],
) -> VacationPeriod:
    if start_date > end_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Start date must be before end date")
    vacation = VacationPeriod(
        user_id=user.id,
        start_date=start_date,
        end_date=end_date,
        description=(description or "").strip() or None,
    )
    db.add(vacation)
    db.commit()
    db.refresh(vacation)
    logger.info("User %s added vacation %s - %s", user.id, start_date, end_date)
    return vacation


def delete_vacation(db: Session, user: User, vacation_id: int) -> None:
    vacation = db.get(VacationPeriod, vacation_id)
    if not vacation or vacation.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vacation not found or unauthorized")
    db.delete(vacation)
    db.commit()


def vacation_spans(vacations: Iterable[VacationPeriod]) -> List[VacationSpan]:
    return [VacationSpan(item.start_date, item.end_date, item.description) for item in vacations]


# --- Entries ------------------------------------------------------------------


def entry_activities(entry: Entry) -> List[Tuple[str, Optional[float]]]:
    """Activities of an entry, read from the relation or the legacy JSON column."""
    if entry.activities:
        return [(activity.description, activity.duration) for activity in entry.activities]
    return decode_legacy_activities(entry.activity)


def serialize_entry(entry: Entry) -> Dict[str, Any]:
    activities = [
        {"description": description, "duration": float(duration or 0.0), "order": index}
        for index, (description, duration) in enumerate(entry_activities(entry))
    ]
    return {
        "id": entry.id,
        "date": entry.date,
        "is_completed": bool(entry.is_completed),
        "week": entry.week,
        "month": entry.month,
        "year": entry.year,
        "activities": activities,
        "total_hours": sum(item["duration"] for item in activities),
    }


def list_entries_for_month(db: Session, user: User, month: int, year: int) -> List[Entry]:
    if not 1 <= month <= 12 or year < 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Month and year are required")
    start = dt.date(year, month, 1)
    end = dt.date(year + 1, 1, 1) if month == 12 else dt.date(year, month + 1, 1)
    return (
        db.query(Entry)
        .filter(Entry.user_id == user.id, Entry.date >= start, Entry.date < end)
        .order_by(Entry.date.asc())
        .all()
    )


def save_entry(
    db: Session,
    user: User,
    day: dt.date,
    activities: List[PlannedActivity],
    is_completed: bool,
) -> Entry:
    if not activities:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Date and activities are required")
    day_config = weekday_config_for(user).for_date(day)
    if not day_config.enabled:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This weekday is disabled in your work time configuration",
        )

    allocated = allocate(day_config.hours, activities)

    entry = db.query(Entry).filter(Entry.user_id == user.id, Entry.date == day).one_or_none()
    if entry is None:
        entry = Entry(user_id=user.id, date=day)
        db.add(entry)
    else:
        entry.activities.clear()
        db.flush()

    entry.activity = None
    entry.is_completed = is_completed
    entry.week = day.isocalendar()[1]
    entry.month = day.month
    entry.year = day.year
    entry.activities.extend(
        ActivityEntry(description=item.description, duration=item.duration, order=index)
        for index, item in enumerate(allocated)
    )
    db.commit()
    db.refresh(entry)
    logger.info(
        "Saved entry %s for user %s: %d activities, %.1fh of %.1fh",
        day,
        user.id,
        len(allocated),
        total_hours(allocated),
        day_config.hours,
    )
    return entry


def migrate_legacy_activities(db: Session) -> int:
    """Convert entries that only carry the legacy JSON column into activity rows."""
    legacy_entries = (
        db.query(Entry)
        .filter(Entry.activity.isnot(None), ~Entry.activities.any())
        .all()
    )
    migrated = 0
    for entry in legacy_entries:
        decoded = decode_legacy_activities(entry.activity)
        if not decoded:
            logger.warning("Legacy entry %s of user %s could not be decoded", entry.date, entry.user_id)
            continue
        entry.activities.extend(
            ActivityEntry(description=description, duration=float(duration or 0.0), order=index)
            for index, (description, duration) in enumerate(decoded)
        )
        entry.activity = None
        migrated += 1
    if migrated:
        db.commit()
        logger.info("Migrated %d legacy entries to activity rows", migrated)
    return migrated


# --- Report -------------------------------------------------------------------


def _report_entries(db: Session, user: User, start: dt.date, end: dt.date) -> List[DatedContent]:
    entries = (
        db.query(Entry)
        .filter(Entry.user_id == user.id, Entry.date >= start, Entry.date <= end)
        .order_by(Entry.date.asc())
        .all()
    )
    dated: List[DatedContent] = []
    for entry in entries:
        content = format_activity_content(entry_activities(entry))
        if not content:
            logger.debug("Skipping entry %s without activities", entry.date)
            continue
        dated.append(DatedContent(entry.date, content))
    return dated


def collect_report_data(
    db: Session,
    user: User,
    from_date: Optional[dt.date] = None,
    to_date: Optional[dt.date] = None,
    today: Optional[dt.date] = None,
) -> ReportData:
    if not user.training_start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Ausbildungsstart-Datum nicht gesetzt. Bitte setzen Sie das Ausbildungsstart-Datum in den Einstellungen.",
        )
    today = today or dt.date.today()
    if from_date and to_date and to_date < from_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid range")
    range_start = from_date or user.training_start_date
    range_end = max(to_date or today, range_start)

    # entries before the first training Monday belong to no report week
    first_monday = first_monday_on_or_before(user.training_start_date)
    entries = [item for item in _report_entries(db, user, range_start, range_end) if item.date >= first_monday]
    vacations = vacation_spans(list_vacations(db, user))
    config = weekday_config_for(user)
    weeks = build_weeks(entries, vacations, config, user.training_start_date, settings.vacation_marker)

    report_start = entries[0].date if entries else range_start
    report_end = entries[-1].date if entries else range_end
    profession = user.training_profession.name if user.training_profession else settings.report_default_profession
    training_year = today.year - user.training_start_date.year + 1

    logger.info(
        "Collected report for user %s: %d entries, %d weeks, %d vacation periods",
        user.id,
        len(entries),
        len(weeks),
        len(vacations),
    )
    return ReportData(
        month=month_label(report_start),
        year=f"{report_start:%Y}",
        date_range=f"{format_date(report_start)} - {format_date(report_end)}",
        weeks=weeks,
        user_info=UserInfo(
            name=user.full_name,
            company=settings.report_company,
            department=user.department or settings.report_default_department,
            profession=profession,
            training_year=str(training_year),
        ),
        weekday_config=config,
        start_date=report_start,
        end_date=report_end,
    )


def _report_filename(report: ReportData, export_format: str) -> str:
    return f"berichtsheft-{report.start_date.isoformat()}-bis-{report.end_date.isoformat()}.{export_format}"


def generate_report(
    db: Session,
    user: User,
    export_format: str = "pdf",
    from_date: Optional[dt.date] = None,
    to_date: Optional[dt.date] = None,
    today: Optional[dt.date] = None,
) -> RenderedReport:
    if export_format not in REPORT_MEDIA_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported export format")
    report = collect_report_data(db, user, from_date, to_date, today)
    try:
        if export_format == "pdf":
            content = render_report_pdf(report)
        else:
            content = render_report_xlsx(report)
    except Exception as exc:
        logger.exception("Report generation failed for user %s", user.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="PDF-Generierung fehlgeschlagen.",
        ) from exc
    logger.info("Rendered %s report for user %s (%d bytes)", export_format, user.id, len(content))
    return RenderedReport(
        filename=_report_filename(report, export_format),
        media_type=REPORT_MEDIA_TYPES[export_format],
        content=content,
    )
