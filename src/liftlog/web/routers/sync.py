"""Per-device sync routes.

Every route requires an ``X-Device-Id`` header; the device is the user.
Upserts store whole documents unconditionally, so the last push wins.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from ...db.repositories import (
    ChatRepository,
    ProgramRepository,
    UserRepository,
    WorkoutRepository,
)
from ...log import get_logger
from ...utils import parse_timestamp

router = APIRouter(prefix="/api/sync", tags=["sync"])
logger = get_logger(__name__)

MAX_WORKOUTS = 500
MAX_CHAT_MESSAGES = 200
CHAT_ROLES = ("user", "assistant")


async def get_user_id(
    request: Request,
    x_device_id: str | None = Header(default=None),
) -> str:
    """Resolve the calling device to a user, creating it on first contact."""
    if not x_device_id:
        raise HTTPException(status_code=401, detail="Device ID required")
    return await UserRepository(request.app.state.db_path).find_or_create(x_device_id)


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be JSON")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be an object")
    return body


def _valid_program(program: Any) -> bool:
    return isinstance(program, dict) and bool(program.get("id")) and bool(program.get("name"))


def _valid_workout(workout: Any) -> bool:
    return isinstance(workout, dict) and bool(workout.get("id"))


def _valid_chat_message(message: Any) -> bool:
    return (
        isinstance(message, dict)
        and message.get("role") in CHAT_ROLES
        and bool(message.get("content"))
    )


def _chat_timestamp(message: dict) -> datetime | None:
    """The client-side send time, if the message carries one."""
    stamp = message.get("timestamp")
    return parse_timestamp(stamp) if stamp else None


def _repos(request: Request) -> tuple[ProgramRepository, WorkoutRepository, ChatRepository]:
    db_path = request.app.state.db_path
    return ProgramRepository(db_path), WorkoutRepository(db_path), ChatRepository(db_path)


@router.get("/user")
async def get_user(user_id: str = Depends(get_user_id)):
    return {"user": {"id": user_id}}


# Programs


@router.get("/programs")
async def list_programs(request: Request, user_id: str = Depends(get_user_id)):
    programs, _, _ = _repos(request)
    return {"programs": await programs.list_for_user(user_id)}


@router.post("/programs")
async def save_program(request: Request, user_id: str = Depends(get_user_id)):
    body = await _json_body(request)
    program = body.get("program")
    if not _valid_program(program):
        raise HTTPException(status_code=400, detail="Invalid program data")

    programs, _, _ = _repos(request)
    await programs.upsert(user_id, program)
    return {"success": True}


@router.post("/programs/active")
async def set_active_program(request: Request, user_id: str = Depends(get_user_id)):
    body = await _json_body(request)
    programs, _, _ = _repos(request)
    await programs.set_active(user_id, body.get("programId") or None)
    return {"success": True}


@router.delete("/programs/{program_id}")
async def delete_program(
    program_id: str, request: Request, user_id: str = Depends(get_user_id)
):
    programs, _, _ = _repos(request)
    if not await programs.delete(user_id, program_id):
        raise HTTPException(status_code=404, detail="Program not found")
    return {"success": True}


# Workouts


@router.get("/workouts")
async def list_workouts(
    request: Request, limit: int = 100, user_id: str = Depends(get_user_id)
):
    _, workouts, _ = _repos(request)
    limit = min(max(limit, 1), MAX_WORKOUTS)
    return {"workouts": await workouts.list_for_user(user_id, limit)}


@router.post("/workouts")
async def save_workout(request: Request, user_id: str = Depends(get_user_id)):
    body = await _json_body(request)
    workout = body.get("workout")
    if not _valid_workout(workout):
        raise HTTPException(status_code=400, detail="Invalid workout data")

    _, workouts, _ = _repos(request)
    await workouts.upsert(user_id, workout)
    return {"success": True}


@router.delete("/workouts/{workout_id}")
async def delete_workout(
    workout_id: str, request: Request, user_id: str = Depends(get_user_id)
):
    _, workouts, _ = _repos(request)
    if not await workouts.delete(user_id, workout_id):
        raise HTTPException(status_code=404, detail="Workout not found")
    return {"success": True}


# Chat history


@router.get("/chat")
async def list_chat(request: Request, limit: int = 50, user_id: str = Depends(get_user_id)):
    _, _, chat = _repos(request)
    limit = min(max(limit, 1), MAX_CHAT_MESSAGES)
    return {"messages": await chat.list_for_user(user_id, limit)}


@router.post("/chat")
async def save_chat_message(request: Request, user_id: str = Depends(get_user_id)):
    body = await _json_body(request)
    role, content = body.get("role"), body.get("content")
    if role not in CHAT_ROLES or not content:
        raise HTTPException(status_code=400, detail="Role and content required")

    try:
        created_at = _chat_timestamp(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid timestamp")

    _, _, chat = _repos(request)
    message_id = await chat.create(user_id, role, content, body.get("id"), created_at)
    return {"success": True, "id": message_id}


@router.delete("/chat")
async def clear_chat(request: Request, user_id: str = Depends(get_user_id)):
    _, _, chat = _repos(request)
    await chat.clear(user_id)
    return {"success": True}


# Full sync


@router.get("/all")
async def fetch_all(request: Request, user_id: str = Depends(get_user_id)):
    """Everything the device needs for an initial sync."""
    programs, workouts, chat = _repos(request)
    program_docs = await programs.list_for_user(user_id)
    return {
        "user": {"id": user_id},
        "programs": program_docs,
        "activeProgram": next((p for p in program_docs if p["isActive"]), None),
        "workouts": await workouts.list_for_user(user_id, MAX_WORKOUTS),
        "chatMessages": await chat.list_for_user(user_id, 100),
    }


@router.post("/all")
async def push_all(request: Request, user_id: str = Depends(get_user_id)):
    """Upsert every valid document; invalid entries are skipped."""
    body = await _json_body(request)
    programs, workouts, chat = _repos(request)

    saved_programs = 0
    for program in body.get("programs") or []:
        if _valid_program(program):
            await programs.upsert(user_id, program)
            saved_programs += 1

    saved_workouts = 0
    for workout in body.get("workouts") or []:
        if _valid_workout(workout):
            await workouts.upsert(user_id, workout)
            saved_workouts += 1

    saved_messages = 0
    for message in body.get("chatMessages") or []:
        # Messages without an id could not be upserted idempotently
        if not _valid_chat_message(message) or not message.get("id"):
            continue
        try:
            created_at = _chat_timestamp(message)
        except ValueError:
            continue
        await chat.create(
            user_id, message["role"], message["content"], message["id"], created_at
        )
        saved_messages += 1

    active = body.get("activeProgram")
    if isinstance(active, dict) and active.get("id"):
        await programs.set_active(user_id, active["id"])

    logger.info(
        "full push stored",
        user_id=user_id,
        programs=saved_programs,
        workouts=saved_workouts,
        chat_messages=saved_messages,
    )
    return {
        "success": True,
        "programs": saved_programs,
        "workouts": saved_workouts,
        "chatMessages": saved_messages,
    }
