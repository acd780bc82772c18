"""Per-level counter backing team code allocation."""

from sqlalchemy import Enum, Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.team import Level


class TeamCodeSequence(Base):
    __tablename__ = "team_code_sequences"

    level: Mapped[Level] = mapped_column(Enum(Level), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
