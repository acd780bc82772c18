"""Team model and the registration status state machine values."""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, Enum, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class TeamStatus(str, enum.Enum):
    PENDING_EVALUATION = "pending_evaluation"
    PASSED_EVALUATION = "passed_evaluation"
    REJECTED = "rejected"
    AWAITING_PAYMENT_VERIFICATION = "awaiting_payment_verification"
    PAYMENT_VERIFIED = "payment_verified"


class Level(str, enum.Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"


class Team(Base):
    __tablename__ = "teams"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    team_code: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)
    team_name: Mapped[str] = mapped_column(String(200), index=True, nullable=False)
    level: Mapped[Level] = mapped_column(Enum(Level), nullable=False)
    total_fee: Mapped[int] = mapped_column(Integer, nullable=False)

    # ── Evaluation ──
    eval_method: Mapped[Optional[str]] = mapped_column(String(100))
    eval_link: Mapped[Optional[str]] = mapped_column(Text)

    status: Mapped[TeamStatus] = mapped_column(
        Enum(TeamStatus, values_callable=lambda e: [m.value for m in e]),
        default=TeamStatus.PENDING_EVALUATION,
        nullable=False,
    )
    slip_path: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    players: Mapped[List["Player"]] = relationship(
        back_populates="team",
        cascade="all, delete-orphan",
        order_by="Player.is_player_one.desc()",
    )
