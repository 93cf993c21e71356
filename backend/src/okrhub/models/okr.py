"""Objective and key result models."""

from uuid import UUID

from sqlalchemy import BigInteger, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from okrhub.models.base import BaseModel


class Objective(BaseModel):
    """An objective. Survives deletion of its team with ``team_id`` cleared."""

    __tablename__ = "objectives"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    owner_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    team_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL"), index=True
    )
    parent_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("objectives.id", ondelete="SET NULL")
    )
    start_date: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_date: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)


class KeyResult(BaseModel):
    """A key result, deleted together with its objective."""

    __tablename__ = "key_results"

    objective_id: Mapped[UUID] = mapped_column(
        ForeignKey("objectives.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_value: Mapped[float] = mapped_column(Float, nullable=False)
    current_value: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    unit: Mapped[str | None] = mapped_column(String(20))
    start_date: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_date: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
