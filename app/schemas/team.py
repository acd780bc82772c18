"""Team / player Pydantic schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from app.models.team import Level, TeamStatus


class PlayerIn(BaseModel):
    full_name: str
    std_staff_id: str
    type: str


class TeamRegistration(BaseModel):
    """Fields submitted on the registration form (photos travel separately)."""
    team_name: str
    level: Level
    eval_method: Optional[str] = None
    eval_link: Optional[str] = None
    player_one: PlayerIn
    player_two: PlayerIn


class PlayerOut(BaseModel):
    full_name: str
    std_staff_id: str
    type: str
    photo_path: str
    is_player_one: bool

    model_config = {"from_attributes": True}


class TeamOut(BaseModel):
    """Team row as listed on the admin dashboard."""
    id: int
    team_code: str
    team_name: str
    level: Level
    total_fee: int
    eval_method: Optional[str] = None
    eval_link: Optional[str] = None
    status: TeamStatus
    slip_path: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TeamDetailOut(TeamOut):
    """Team row joined with its two players."""
    players: List[PlayerOut] = []


class TeamStatusOut(BaseModel):
    team: TeamDetailOut
    qr_code_path: Optional[str] = None


class RegisterOut(BaseModel):
    message: str
    team_code: str
    total_fee: int
    status: TeamStatus


class StatusUpdate(BaseModel):
    team_id: int
    new_status: TeamStatus


class LevelCount(BaseModel):
    level: Level
    total: int
    passed: int
