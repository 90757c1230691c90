from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing_extensions import Literal


def _check_half_hours(value: Optional[float]) -> Optional[float]:
    if value is None:
        return value
    if (value * 2) != int(value * 2):
        raise ValueError("Stunden müssen in 0,5-Schritten angegeben werden")
    return value


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6, max_length=72)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value or value.startswith("@"):
            raise ValueError("Ungültige E-Mail-Adresse")
        return value


class LoginRequest(BaseModel):
    email: str
    password: str


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    email: str
    name: str


class AuthResponse(BaseModel):
    user: UserSummary
    token: str
    expires_at: Optional[dt.datetime] = None
    requires_setup: bool = False


class AuthCheckResponse(BaseModel):
    authenticated: bool
    user_id: Optional[int] = None


class TrainingProfessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    category: Optional[str] = None


class TrainingProfessionListResponse(BaseModel):
    professions: List[TrainingProfessionResponse]


class WorkTimeFields(BaseModel):
    monday_enabled: bool = True
    monday_hours: float = Field(default=8.0, ge=0, le=24)
    tuesday_enabled: bool = True
    tuesday_hours: float = Field(default=8.0, ge=0, le=24)
    wednesday_enabled: bool = True
    wednesday_hours: float = Field(default=8.0, ge=0, le=24)
    thursday_enabled: bool = True
    thursday_hours: float = Field(default=8.0, ge=0, le=24)
    friday_enabled: bool = True
    friday_hours: float = Field(default=8.0, ge=0, le=24)
    saturday_enabled: bool = False
    saturday_hours: float = Field(default=0.0, ge=0, le=24)
    sunday_enabled: bool = False
    sunday_hours: float = Field(default=0.0, ge=0, le=24)

    @field_validator(
        "monday_hours",
        "tuesday_hours",
        "wednesday_hours",
        "thursday_hours",
        "friday_hours",
        "saturday_hours",
        "sunday_hours",
    )
    @classmethod
    def _validate_hours(cls, value: float) -> float:
        return _check_half_hours(value)


class UserSettingsResponse(WorkTimeFields):
    model_config = ConfigDict(from_attributes=True)
    id: int
    email: str
    name: str
    surname: Optional[str] = None
    training_class: Optional[str] = None
    training_profession_id: Optional[int] = None
    training_profession: Optional[TrainingProfessionResponse] = None
    training_start_date: Optional[dt.date] = None
    department: Optional[str] = None


class UserSettingsUpdateRequest(WorkTimeFields):
    name: str = Field(min_length=1, max_length=100)
    surname: str = Field(min_length=1, max_length=100)
    training_profession_id: int
    training_class: Optional[str] = None
    training_start_date: Optional[dt.date] = None
    department: Optional[str] = None


class ActivityInput(BaseModel):
    description: str = Field(min_length=1)
    duration: Optional[float] = Field(default=None, ge=0, le=24)

    @field_validator("description")
    @classmethod
    def _strip_description(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Beschreibung darf nicht leer sein")
        return value

    @field_validator("duration")
    @classmethod
    def _validate_duration(cls, value: Optional[float]) -> Optional[float]:
        return _check_half_hours(value)


class EntrySaveRequest(BaseModel):
    date: dt.date
    activities: List[ActivityInput] = Field(default_factory=list)
    is_completed: bool = False


class ActivityResponse(BaseModel):
    description: str
    duration: float
    order: int


class EntryResponse(BaseModel):
    id: int
    date: dt.date
    is_completed: bool
    week: int
    month: int
    year: int
    activities: List[ActivityResponse]
    total_hours: float


class EntryListResponse(BaseModel):
    entries: List[EntryResponse]


class VacationCreateRequest(BaseModel):
    start_date: dt.date
    end_date: dt.date
    description: Optional[str] = None


class VacationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    start_date: dt.date
    end_date: dt.date
    description: Optional[str] = None


ReportFormat = Literal["pdf", "xlsx"]
