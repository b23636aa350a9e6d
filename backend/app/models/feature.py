from __future__ import annotations

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db import Base

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 1000
AUTHOR_NAME_MAX_LENGTH = 100


class Feature(Base):
    __tablename__ = "features"
    __table_args__ = (CheckConstraint("votes >= 0", name="votes_non_negative"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(
        String(DESCRIPTION_MAX_LENGTH), nullable=True, default=None
    )
    author_name: Mapped[str] = mapped_column(String(AUTHOR_NAME_MAX_LENGTH), nullable=False)
    # Denormalised count of rows in `votes`; only vote_service mutates it.
    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    # Timestamps are ISO 8601 strings, same as the rest of the schema.
    created_at: Mapped[str] = mapped_column(String, nullable=False, index=True)
    updated_at: Mapped[str] = mapped_column(String, nullable=False)

    vote_rows: Mapped[list[Vote]] = relationship("Vote", back_populates="feature")


class Vote(Base):
    __tablename__ = "votes"
    # One vote per voter per feature. This constraint is what makes
    # concurrent duplicate votes safe; do not replace it with a pre-check.
    __table_args__ = (
        UniqueConstraint("feature_id", "voter_ip", name="uq_votes_feature_id_voter_ip"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    feature_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("features.id"), nullable=False, index=True
    )
    voter_ip: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[str] = mapped_column(String, nullable=False)

    feature: Mapped[Feature] = relationship("Feature", back_populates="vote_rows")
