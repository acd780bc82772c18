"""
Registration workflow — fees, team codes, team/player persistence,
payment slips and admin status transitions.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.models.player import Player
from app.models.team import Level, Team, TeamStatus
from app.models.team_code_sequence import TeamCodeSequence
from app.schemas.team import TeamRegistration
from app.services.storage import StorageError, StorageGateway

logger = logging.getLogger(__name__)

# Statuses counted as having passed evaluation.
PASSED_STATUSES = {
    TeamStatus.PASSED_EVALUATION,
    TeamStatus.AWAITING_PAYMENT_VERIFICATION,
    TeamStatus.PAYMENT_VERIFIED,
}

# Transitions an admin may apply. Entering AWAITING_PAYMENT_VERIFICATION
# only happens through a slip upload.
ALLOWED_TRANSITIONS: Dict[TeamStatus, set] = {
    TeamStatus.PENDING_EVALUATION: {TeamStatus.PASSED_EVALUATION, TeamStatus.REJECTED},
    TeamStatus.PASSED_EVALUATION: set(),
    TeamStatus.REJECTED: set(),
    TeamStatus.AWAITING_PAYMENT_VERIFICATION: {
        TeamStatus.PAYMENT_VERIFIED,
        TeamStatus.PASSED_EVALUATION,  # slip rejected, team re-uploads
    },
    TeamStatus.PAYMENT_VERIFIED: set(),
}


class RegistrationError(Exception):
    pass


class TeamNotFoundError(RegistrationError):
    pass


class StatusPreconditionError(RegistrationError):
    pass


class InvalidTransitionError(RegistrationError):
    pass


# ═══════════════════════════════════════════════════════════════
#  Fees & team codes
# ═══════════════════════════════════════════════════════════════

def player_fee(player_type: str) -> int:
    if (player_type or "").strip().lower() == "student":
        return settings.STUDENT_FEE
    return settings.NON_STUDENT_FEE


def compute_total_fee(p1_type: str, p2_type: str) -> int:
    return player_fee(p1_type) + player_fee(p2_type)


def format_team_code(level: Level, seq: int) -> str:
    """``SUT25-E001`` style code; the suffix widens past 999."""
    return f"{settings.TEAM_CODE_PREFIX}-{Level(level).value}{seq:03d}"


async def seed_team_code_sequences(db: AsyncSession) -> None:
    """Make sure every level has a counter row."""
    result = await db.execute(select(TeamCodeSequence.level))
    existing = set(result.scalars().all())
    for level in Level:
        if level not in existing:
            db.add(TeamCodeSequence(level=level, last_value=0))
    await db.commit()


async def next_team_code(db: AsyncSession, level: Level) -> str:
    """
    Allocate the next code for ``level``.

    The counter row is incremented with UPDATE ... RETURNING, so the
    database row lock serialises concurrent registrations for a level.
    """
    level = Level(level)
    result = await db.execute(
        update(TeamCodeSequence)
        .where(TeamCodeSequence.level == level)
        .values(last_value=TeamCodeSequence.last_value + 1)
        .returning(TeamCodeSequence.last_value)
        .execution_options(synchronize_session=False)
    )
    seq = result.scalar_one_or_none()
    if seq is None:
        db.add(TeamCodeSequence(level=level, last_value=1))
        await db.flush()
        seq = 1
    return format_team_code(level, seq)


# ═══════════════════════════════════════════════════════════════
#  Registration
# ═══════════════════════════════════════════════════════════════

async def remove_uploads(storage: StorageGateway, urls: List[str]) -> None:
    for url in urls:
        try:
            await storage.remove(url)
            logger.info(f"Removed orphaned upload {url}")
        except StorageError as e:
            logger.error(f"Could not remove orphaned upload {url}: {e}")


async def register_team(
    db: AsyncSession,
    storage: StorageGateway,
    registration: TeamRegistration,
    p1_photo: dict,
    p2_photo: dict,
) -> Team:
    """
    Create a team and its two players in one transaction.

    ``p1_photo`` / ``p2_photo`` are dicts with ``data``, ``content_type``
    and ``filename``. If anything fails, the transaction is rolled back
    and photos already uploaded are deleted before the error propagates.
    """
    total_fee = compute_total_fee(registration.player_one.type, registration.player_two.type)
    uploaded: List[str] = []

    try:
        team_code = await next_team_code(db, registration.level)

        team = Team(
            team_code=team_code,
            team_name=registration.team_name.strip(),
            level=registration.level,
            total_fee=total_fee,
            eval_method=registration.eval_method,
            eval_link=registration.eval_link,
            status=TeamStatus.PENDING_EVALUATION,
        )
        db.add(team)
        await db.flush()  # to get team.id

        p1_url = await storage.upload(
            p1_photo["data"], p1_photo["content_type"], f"p1_{team_code}", p1_photo["filename"]
        )
        uploaded.append(p1_url)
        p2_url = await storage.upload(
            p2_photo["data"], p2_photo["content_type"], f"p2_{team_code}", p2_photo["filename"]
        )
        uploaded.append(p2_url)

        db.add_all([
            Player(
                team_id=team.id,
                full_name=registration.player_one.full_name,
                std_staff_id=registration.player_one.std_staff_id,
                type=registration.player_one.type,
                photo_path=p1_url,
                is_player_one=True,
            ),
            Player(
                team_id=team.id,
                full_name=registration.player_two.full_name,
                std_staff_id=registration.player_two.std_staff_id,
                type=registration.player_two.type,
                photo_path=p2_url,
                is_player_one=False,
            ),
        ])
        await db.commit()
    except Exception:
        logger.exception(f"Registration of team {registration.team_name!r} failed, rolling back")
        await db.rollback()
        await remove_uploads(storage, uploaded)
        raise

    logger.info(f"Registered team {team.team_code} ({team.team_name}), fee {total_fee}")
    return team


# ═══════════════════════════════════════════════════════════════
#  Lookups
# ═══════════════════════════════════════════════════════════════

def _team_with_players():
    return select(Team).options(selectinload(Team.players))


async def get_team_by_code(db: AsyncSession, team_code: str) -> Optional[Team]:
    result = await db.execute(
        _team_with_players().where(Team.team_code == team_code.strip().upper())
    )
    return result.scalar_one_or_none()


async def get_team_by_name(db: AsyncSession, team_name: str) -> Optional[Team]:
    """Team names are not unique; the earliest registration wins."""
    result = await db.execute(
        _team_with_players().where(Team.team_name == team_name.strip()).order_by(Team.id).limit(1)
    )
    return result.scalars().first()


async def get_team_by_id(db: AsyncSession, team_id: int) -> Optional[Team]:
    result = await db.execute(_team_with_players().where(Team.id == team_id))
    return result.scalar_one_or_none()


async def list_teams(db: AsyncSession) -> List[Team]:
    result = await db.execute(select(Team).order_by(Team.created_at.desc(), Team.id.desc()))
    return list(result.scalars().all())


async def count_teams_by_level(db: AsyncSession) -> List[dict]:
    """Registered and passed team counts for each level A–E."""
    result = await db.execute(
        select(Team.level, Team.status, func.count(Team.id)).group_by(Team.level, Team.status)
    )
    counts = {level: {"total": 0, "passed": 0} for level in Level}
    for level, status, n in result.all():
        if level not in counts:
            continue
        counts[level]["total"] += n
        if status in PASSED_STATUSES:
            counts[level]["passed"] += n

    return [
        {"level": level.value, "total": c["total"], "passed": c["passed"]}
        for level, c in counts.items()
    ]


async def _claim_transition(
    db: AsyncSession, team: Team, expected: TeamStatus, values: dict
) -> bool:
    """
    Apply ``values`` to ``team`` only while it still has status ``expected``.

    The status check lives in the UPDATE's WHERE clause, so of two requests
    racing on one team only the first to take the row lock matches.
    """
    result = await db.execute(
        update(Team)
        .where(Team.id == team.id, Team.status == expected)
        .values(**values)
        .returning(Team.id)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one_or_none() is not None


# ═══════════════════════════════════════════════════════════════
#  Payment slip
# ═══════════════════════════════════════════════════════════════

async def upload_slip(
    db: AsyncSession,
    storage: StorageGateway,
    team_code: str,
    data: bytes,
    content_type: Optional[str],
    filename: Optional[str],
) -> Team:
    team_code = team_code.strip().upper()
    result = await db.execute(select(Team).where(Team.team_code == team_code))
    team = result.scalar_one_or_none()
    if team is None:
        raise TeamNotFoundError(team_code)
    if team.status != TeamStatus.PASSED_EVALUATION:
        raise StatusPreconditionError(
            f"Team {team_code} is {team.status.value}, slips are accepted only after evaluation passes"
        )

    slip_url = await storage.upload(data, content_type, f"slip_{team_code}", filename)
    try:
        claimed = await _claim_transition(
            db,
            team,
            TeamStatus.PASSED_EVALUATION,
            {"slip_path": slip_url, "status": TeamStatus.AWAITING_PAYMENT_VERIFICATION},
        )
        if claimed:
            await db.commit()
    except Exception:
        logger.exception(f"Could not record slip for {team_code}")
        await db.rollback()
        await remove_uploads(storage, [slip_url])
        raise

    if not claimed:
        await db.rollback()
        await remove_uploads(storage, [slip_url])
        raise StatusPreconditionError(
            f"Team {team_code} is no longer waiting for a payment slip"
        )

    await db.refresh(team, ["status", "slip_path", "updated_at"])
    logger.info(f"Team {team_code} uploaded a payment slip")
    return team


# ═══════════════════════════════════════════════════════════════
#  Admin status transitions
# ═══════════════════════════════════════════════════════════════

def validate_transition(current: TeamStatus, new: TeamStatus) -> None:
    if new not in ALLOWED_TRANSITIONS.get(TeamStatus(current), set()):
        raise InvalidTransitionError(
            f"Cannot move a team from {TeamStatus(current).value} to {TeamStatus(new).value}"
        )


async def update_status(db: AsyncSession, team_id: int, new_status: TeamStatus) -> Team:
    team = await get_team_by_id(db, team_id)
    if team is None:
        raise TeamNotFoundError(str(team_id))

    team_code, previous = team.team_code, team.status
    validate_transition(previous, new_status)
    if not await _claim_transition(db, team, previous, {"status": new_status}):
        await db.rollback()
        raise InvalidTransitionError(
            f"Team {team_code} changed status while this update was pending"
        )
    await db.commit()
    await db.refresh(team, ["status", "updated_at"])
    logger.info(f"Team {team_code}: {previous.value} -> {new_status.value}")
    return team
