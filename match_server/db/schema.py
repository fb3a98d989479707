"""Database tables / schema"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Numeric
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class DBMatch(Base):
    __tablename__ = "matches"
    id: Mapped[str] = mapped_column(primary_key=True)
    status: Mapped[str]
    white_player_id: Mapped[Optional[str]]
    black_player_id: Mapped[Optional[str]]
    white_display_name: Mapped[Optional[str]]
    black_display_name: Mapped[Optional[str]]
    stake_amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False))
    time_control: Mapped[str]
    game_mode: Mapped[str]
    winner_id: Mapped[Optional[str]]
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
