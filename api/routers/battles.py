"""Battles Router - head-to-head battles on a shared challenge.

Endpoints:
- GET /api/battles - List battles (?status=available|active|completed|history|all)
- GET /api/battles/submission - The caller's latest submission in a battle
- GET /api/battles/{id} - Battle detail with challenge metadata
- POST /api/battles/create - Open a battle, optionally inviting a user by name
- POST /api/battles/join - Join an open battle
- POST /api/battles/accept - Accept an invitation
- POST /api/battles/decline - Decline an invitation (battle reopens)
- POST /api/battles/submit - Submit a solution inside an active battle
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel

from app.auth import get_current_user, get_user_id_from_authorization_header
from app.deps import get_battle_machine, get_store
from domain.battles import BattleStateMachine, battle_view
from domain.battles.state_machine import LIST_SCOPES
from domain.errors import NotFoundError, ValidationError
from domain.records import UserRecord
from domain.repository import RecordStore

router = APIRouter(prefix="/api/battles", tags=["battles"])

logger = logging.getLogger(__name__)


class CreateBattleRequest(BaseModel):
    title: str
    challenge_id: Optional[str] = None
    opponent_username: Optional[str] = None
    language: Optional[str] = None
    duration_minutes: Optional[int] = None
    prize_points: Optional[int] = None


class BattleIdRequest(BaseModel):
    id: str


class BattleSubmitRequest(BaseModel):
    id: str
    language: str
    code: str


@router.get("")
def list_battles(
    status: str = "all",
    authorization: Optional[str] = Header(None),
    machine: BattleStateMachine = Depends(get_battle_machine),
):
    scope = (status or "all").strip().lower()
    if scope not in LIST_SCOPES:
        raise ValidationError(f"Unknown battle status filter '{status}'")

    viewer_id = get_user_id_from_authorization_header(authorization)
    battles = machine.list(scope, viewer_id=viewer_id)
    return {"total": len(battles), "items": [b.to_dict() for b in battles]}


@router.get("/submission")
def get_latest_battle_submission(
    battle_id: str,
    user: UserRecord = Depends(get_current_user),
    machine: BattleStateMachine = Depends(get_battle_machine),
):
    submission = machine.latest_submission(user.id, battle_id)
    return {"submission": submission.to_dict(include_code=True) if submission else None}


@router.get("/{battle_id}")
def get_battle(battle_id: str, machine: BattleStateMachine = Depends(get_battle_machine)):
    battle, challenge = machine.get(battle_id)
    return battle_view(battle, challenge)


@router.post("/create")
def create_battle(
    payload: CreateBattleRequest,
    user: UserRecord = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
    machine: BattleStateMachine = Depends(get_battle_machine),
):
    invited_id = None
    if payload.opponent_username:
        opponent = store.get_user_by_username(payload.opponent_username.strip())
        if opponent is None or not opponent.is_active:
            logger.info(f"Battle invite from {user.id} rejected: unknown opponent '{payload.opponent_username}'")
            raise NotFoundError("Opponent not found")
        invited_id = opponent.id

    battle = machine.create(
        user.id,
        payload.title,
        challenge_id=payload.challenge_id,
        invited_id=invited_id,
        duration_minutes=payload.duration_minutes,
        prize_points=payload.prize_points,
        language=payload.language,
    )
    return battle.to_dict()


@router.post("/join")
def join_battle(
    payload: BattleIdRequest,
    user: UserRecord = Depends(get_current_user),
    machine: BattleStateMachine = Depends(get_battle_machine),
):
    return machine.join(user.id, payload.id).to_dict()


@router.post("/accept")
def accept_battle(
    payload: BattleIdRequest,
    user: UserRecord = Depends(get_current_user),
    machine: BattleStateMachine = Depends(get_battle_machine),
):
    return machine.accept(user.id, payload.id).to_dict()


@router.post("/decline")
def decline_battle(
    payload: BattleIdRequest,
    user: UserRecord = Depends(get_current_user),
    machine: BattleStateMachine = Depends(get_battle_machine),
):
    return machine.decline(user.id, payload.id).to_dict()


@router.post("/submit")
def submit_battle_solution(
    payload: BattleSubmitRequest,
    user: UserRecord = Depends(get_current_user),
    machine: BattleStateMachine = Depends(get_battle_machine),
):
    result = machine.submit(user.id, payload.id, payload.language, payload.code)
    return result.to_dict()


__all__ = ["router"]
