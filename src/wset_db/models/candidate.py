"""Candidate ORM models — the person record and its course enrollments.

A ``Candidate`` is the customer/person, matched across orders by
lower-cased email.  A ``WSETCandidate`` is one enrollment of that person
for a specific exam sitting; retakes and repeat orders produce several
enrollments for the same person.
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    SmallInteger,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wset_db.models.base import Base


class Candidate(Base):
    """One row per person."""

    __tablename__ = "candidates"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)
    # Always stored lower-cased; the unique index is the matching key
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    enrollments: Mapped[list["WSETCandidate"]] = relationship(
        back_populates="candidate",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Candidate(id={self.id!s}, email={self.email!r})>"


class WSETCandidate(Base):
    """One course enrollment, created from a single source order."""

    __tablename__ = "wset_candidates"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    candidate_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("candidates.id"),
        nullable=False,
        index=True,
    )

    # --- Source order ---
    source_order_id: Mapped[str] = mapped_column(Text, nullable=False)
    order_number: Mapped[str] = mapped_column(Text, nullable=False)

    # --- Course / exam ---
    # Free text, taken from the line item's product name
    course_type: Mapped[str] = mapped_column(Text, nullable=False)
    course_level: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    exam_date: Mapped[date] = mapped_column(Date, nullable=False)
    exam_type: Mapped[str] = mapped_column(String(3), nullable=False)

    # --- Exam-board paperwork ---
    birthdate: Mapped[str | None] = mapped_column(Text, nullable=True)
    gender: Mapped[str | None] = mapped_column(Text, nullable=True)
    full_address: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    candidate: Mapped[Candidate] = relationship(back_populates="enrollments")

    __table_args__ = (
        CheckConstraint("course_level BETWEEN 1 AND 4", name="ck_course_level_range"),
        CheckConstraint("exam_type IN ('PDF', 'RI')", name="ck_exam_type"),
        Index("ix_wset_candidates_source_order_id", "source_order_id"),
        Index("ix_wset_candidates_exam_date", "exam_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<WSETCandidate(id={self.id!s}, order={self.order_number!r}, "
            f"level={self.course_level}, exam={self.exam_type} {self.exam_date})>"
        )
