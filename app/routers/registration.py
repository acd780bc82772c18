"""
Public registration router — sign-up, payment slips, status lookups.

Endpoints:
    POST /api/register                  → register a team with two player photos
    POST /api/upload-slip/{team_code}   → upload a payment slip
    GET  /api/status/name/{team_name}   → team + players (+ QR once passed)
    GET  /api/status/{team_code}        → team + players (+ QR once passed)
    GET  /api/config/qr_code_path       → current payment QR code URL
    GET  /api/team-count-by-level       → registered / passed counts per level
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.team import Level, Team, TeamStatus
from app.schemas.team import (
    LevelCount,
    PlayerIn,
    RegisterOut,
    TeamDetailOut,
    TeamRegistration,
    TeamStatusOut,
)
from app.services import registration as workflow
from app.services.config_store import QR_CODE_KEY, ConfigStore, get_config_store
from app.services.storage import StorageGateway, get_storage
from app.services.uploads import read_upload

router = APIRouter(prefix="/api", tags=["registration"])


async def _status_response(team: Team, config: ConfigStore) -> TeamStatusOut:
    """Attach the payment QR code only for teams waiting to pay."""
    qr_code_path = None
    if team.status == TeamStatus.PASSED_EVALUATION:
        qr_code_path = await config.get(QR_CODE_KEY)
    return TeamStatusOut(team=TeamDetailOut.model_validate(team), qr_code_path=qr_code_path)


# ═══════════════════════════════════════════════════════════════
#  Registration
# ═══════════════════════════════════════════════════════════════

@router.post("/register", response_model=RegisterOut)
async def register(
    team_name: str = Form(...),
    level: str = Form(...),
    p1_name: str = Form(...),
    p1_id: str = Form(...),
    p1_type: str = Form(...),
    p2_name: str = Form(...),
    p2_id: str = Form(...),
    p2_type: str = Form(...),
    eval_method: Optional[str] = Form(None),
    eval_link: Optional[str] = Form(None),
    p1_photo: Optional[UploadFile] = File(None),
    p2_photo: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: StorageGateway = Depends(get_storage),
):
    """Register a team; both player photos are required."""
    if not team_name.strip():
        raise HTTPException(status_code=400, detail="Team name is required")
    if p1_photo is None or p2_photo is None or not p1_photo.filename or not p2_photo.filename:
        raise HTTPException(status_code=400, detail="Photos of both players are required")

    try:
        team_level = Level(level.strip().upper())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown level: {level}")

    p1_data = await read_upload(p1_photo, "Photo of player one is required")
    p2_data = await read_upload(p2_photo, "Photo of player two is required")

    registration = TeamRegistration(
        team_name=team_name,
        level=team_level,
        eval_method=eval_method,
        eval_link=eval_link,
        player_one=PlayerIn(full_name=p1_name, std_staff_id=p1_id, type=p1_type),
        player_two=PlayerIn(full_name=p2_name, std_staff_id=p2_id, type=p2_type),
    )
    team = await workflow.register_team(
        db,
        storage,
        registration,
        {"data": p1_data, "content_type": p1_photo.content_type, "filename": p1_photo.filename},
        {"data": p2_data, "content_type": p2_photo.content_type, "filename": p2_photo.filename},
    )
    return RegisterOut(
        message="Registration complete! Use your team name or team code to track its status.",
        team_code=team.team_code,
        total_fee=team.total_fee,
        status=team.status,
    )


# ═══════════════════════════════════════════════════════════════
#  Payment slip
# ═══════════════════════════════════════════════════════════════

@router.post("/upload-slip/{team_code}")
async def upload_slip(
    team_code: str,
    slip: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: StorageGateway = Depends(get_storage),
):
    """Attach a payment slip to a team that has passed evaluation."""
    data = await read_upload(slip, "Payment slip file is required")
    try:
        team = await workflow.upload_slip(
            db, storage, team_code, data, slip.content_type, slip.filename
        )
    except workflow.TeamNotFoundError:
        raise HTTPException(status_code=404, detail="Team code not found")
    except workflow.StatusPreconditionError:
        raise HTTPException(
            status_code=403,
            detail="The team has not passed evaluation yet. Please wait for the admin.",
        )

    return {
        "message": "Slip uploaded! Your team is now awaiting payment verification.",
        "status": team.status,
    }


# ═══════════════════════════════════════════════════════════════
#  Status lookups
# ═══════════════════════════════════════════════════════════════

@router.get("/status/name/{team_name}", response_model=TeamStatusOut)
async def status_by_name(
    team_name: str,
    db: AsyncSession = Depends(get_db),
    config: ConfigStore = Depends(get_config_store),
):
    team = await workflow.get_team_by_name(db, team_name)
    if not team:
        raise HTTPException(status_code=404, detail="No team with this name")
    return await _status_response(team, config)


@router.get("/status/{team_code}", response_model=TeamStatusOut)
async def status_by_code(
    team_code: str,
    db: AsyncSession = Depends(get_db),
    config: ConfigStore = Depends(get_config_store),
):
    team = await workflow.get_team_by_code(db, team_code)
    if not team:
        raise HTTPException(status_code=404, detail="Team code not found")
    return await _status_response(team, config)


# ═══════════════════════════════════════════════════════════════
#  Public config & stats
# ═══════════════════════════════════════════════════════════════

@router.get("/config/qr_code_path")
async def qr_code_path(config: ConfigStore = Depends(get_config_store)):
    path = await config.get(QR_CODE_KEY)
    if not path:
        raise HTTPException(status_code=404, detail="No QR code has been configured")
    return {"qr_code_path": path}


@router.get("/team-count-by-level")
async def team_count_by_level(db: AsyncSession = Depends(get_db)):
    counts = await workflow.count_teams_by_level(db)
    return {"counts": [LevelCount(**c) for c in counts]}
