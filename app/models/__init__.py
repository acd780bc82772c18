"""
SUT Badminton Registration – SQLAlchemy ORM models package.

Imports all model classes so the app can discover them
through a single ``import app.models`` before ``create_all``.
"""

from app.models.team import Level, Team, TeamStatus            # noqa: F401
from app.models.player import Player                          # noqa: F401
from app.models.app_config import AppConfig                   # noqa: F401
from app.models.team_code_sequence import TeamCodeSequence    # noqa: F401
