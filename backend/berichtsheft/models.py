from __future__ import annotations

import datetime as dt

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class TrainingProfession(Base):
    __tablename__ = "training_professions"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, unique=True, index=True)
    category = Column(String(100), nullable=True)

    users = relationship("User", back_populates="training_profession")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    surname = Column(String(100), nullable=True)
    training_class = Column(String(50), nullable=True)
    training_profession_id = Column(Integer, ForeignKey("training_professions.id"), nullable=True)
    training_start_date = Column(Date, nullable=True)
    department = Column(String(100), nullable=True)

    monday_enabled = Column(Boolean, nullable=False, default=True)
    monday_hours = Column(Float, nullable=False, default=8.0)
    tuesday_enabled = Column(Boolean, nullable=False, default=True)
    tuesday_hours = Column(Float, nullable=False, default=8.0)
    wednesday_enabled = Column(Boolean, nullable=False, default=True)
    wednesday_hours = Column(Float, nullable=False, default=8.0)
    thursday_enabled = Column(Boolean, nullable=False, default=True)
    thursday_hours = Column(Float, nullable=False, default=8.0)
    friday_enabled = Column(Boolean, nullable=False, default=True)
    friday_hours = Column(Float, nullable=False, default=8.0)
    saturday_enabled = Column(Boolean, nullable=False, default=False)
    saturday_hours = Column(Float, nullable=False, default=0.0)
    sunday_enabled = Column(Boolean, nullable=False, default=False)
    sunday_hours = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    training_profession = relationship("TrainingProfession", back_populates="users")
    entries = relationship("Entry", back_populates="user", cascade="all, delete-orphan")
    vacations = relationship("VacationPeriod", back_populates="user", cascade="all, delete-orphan")
    tokens = relationship("AccessToken", back_populates="user", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        if self.surname:
            return f"{self.name} {self.surname}"
        return self.name


class Entry(Base):
    __tablename__ = "entries"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_entries_user_date"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    # Legacy JSON array of {description, duration}; superseded by the activities relation.
    activity = Column(Text, nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    week = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="entries")
    activities = relationship(
        "ActivityEntry",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="ActivityEntry.order",
    )


class ActivityEntry(Base):
    __tablename__ = "activity_entries"

    id = Column(Integer, primary_key=True)
    entry_id = Column(Integer, ForeignKey("entries.id"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    duration = Column(Float, nullable=False, default=0.0)
    order = Column(Integer, nullable=False, default=0)

    entry = relationship("Entry", back_populates="activities")


class VacationPeriod(Base):
    __tablename__ = "vacation_periods"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="vacations")


class AccessToken(Base):
    __tablename__ = "access_tokens"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    token_hash = Column(String(128), nullable=False, unique=True)
    expires_at = Column(DateTime(), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_used_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="tokens")
