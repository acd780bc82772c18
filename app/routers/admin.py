"""
Admin router: dashboard listing, team details, status changes, QR upload.

Every route requires an admin JWT (see ``app.routers.auth``).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.routers.auth import require_admin
from app.schemas.team import StatusUpdate, TeamDetailOut, TeamOut
from app.services import registration as workflow
from app.services.config_store import QR_CODE_KEY, ConfigStore, get_config_store
from app.services.storage import StorageGateway, get_storage
from app.services.uploads import read_upload

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("/teams")
async def list_teams(db: AsyncSession = Depends(get_db)):
    """All teams, newest first."""
    teams = await workflow.list_teams(db)
    teams_out: List[TeamOut] = [TeamOut.model_validate(t) for t in teams]
    return {"teams": teams_out}


@router.get("/team-details/{team_id}")
async def team_details(team_id: int, db: AsyncSession = Depends(get_db)):
    team = await workflow.get_team_by_id(db, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return {"team": TeamDetailOut.model_validate(team)}


@router.post("/update-status")
async def update_status(body: StatusUpdate, db: AsyncSession = Depends(get_db)):
    """Move a team along the evaluation / payment state machine."""
    try:
        team = await workflow.update_status(db, body.team_id, body.new_status)
    except workflow.TeamNotFoundError:
        raise HTTPException(status_code=404, detail="Team not found")
    except workflow.InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {
        "message": f"Team {team.team_code} is now {team.status.value}",
        "team": TeamDetailOut.model_validate(team),
    }


@router.post("/upload-qr")
async def upload_qr(
    qr_code: Optional[UploadFile] = File(None),
    storage: StorageGateway = Depends(get_storage),
    config: ConfigStore = Depends(get_config_store),
):
    """Replace the payment QR code shown to teams that passed evaluation."""
    data = await read_upload(qr_code, "QR code file is required")
    qr_url = await storage.upload(data, qr_code.content_type, "config_qr_code", qr_code.filename)

    if not await config.set(QR_CODE_KEY, qr_url):
        await workflow.remove_uploads(storage, [qr_url])
        raise HTTPException(status_code=500, detail="Could not save the QR code URL")
    return {"message": "QR code uploaded", "url": qr_url}
