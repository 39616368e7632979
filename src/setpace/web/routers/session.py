"""Workout session routes."""

from fastapi import APIRouter, Form, Request
from fastapi.responses import JSONResponse

from ...db.repositories import SessionRepository
from ...exceptions import (
    ActiveSessionExistsError,
    ConfirmationRequired,
    SetpaceError,
)
from ...services.session_tracker import SessionTracker

router = APIRouter(prefix="/session", tags=["session"])


def error_response(message: str, status_code: int = 400, **extra) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


async def get_tracker(request: Request) -> SessionTracker | None:
    """The tracker of the session in progress, resuming it if needed."""
    state = request.app.state
    tracker = state.tracker
    if tracker is not None and not tracker.closed:
        return tracker

    active = await SessionRepository(state.db_path).get_active_session()
    if active is None:
        state.tracker = None
        return None

    state.tracker = await SessionTracker.resume(
        active.id,
        db_path=state.db_path,
        clock=state.clock,
        publisher=state.publisher,
    )
    return state.tracker


def session_payload(tracker: SessionTracker) -> dict:
    exercises = []
    for exercise in tracker.exercises:
        exercises.append(
            {
                **exercise.to_dict(),
                "completed": tracker.is_exercise_completed(exercise.exercise_id),
                "logged_sets": [
                    s.to_dict() for s in tracker.completed_sets(exercise.exercise_id)
                ],
            }
        )
    summary = tracker.publisher.current
    return {
        "active": True,
        "timer": tracker.snapshot().to_dict(),
        "summary": summary.to_dict() if summary else None,
        "notes": tracker.session.notes,
        "exercises": exercises,
    }


@router.get("")
async def get_session(request: Request):
    """The session in progress with live timer values."""
    tracker = await get_tracker(request)
    if tracker is None:
        return {"active": False}
    return session_payload(tracker)


@router.post("/start")
async def start_session(
    request: Request,
    plan_id: int = Form(...),
    day_id: int = Form(...),
):
    """Check in to a new session."""
    state = request.app.state
    try:
        state.tracker = await SessionTracker.start(
            plan_id,
            day_id,
            db_path=state.db_path,
            clock=state.clock,
            publisher=state.publisher,
        )
    except ActiveSessionExistsError as e:
        return error_response(str(e), 409, session_id=e.session_id)
    except SetpaceError as e:
        return error_response(str(e), 404)
    return session_payload(state.tracker)


@router.post("/exercise")
async def switch_exercise(
    request: Request,
    exercise_id: int = Form(...),
    confirm: bool = Form(False),
):
    """Switch to an exercise; asks for confirmation as the CLI does."""
    tracker = await get_tracker(request)
    if tracker is None:
        return error_response("No session in progress", 404)

    reason = tracker.needs_switch_confirmation(exercise_id)
    if reason and not confirm:
        return error_response(reason, 409, confirmation_required=True)
    try:
        adopted = await tracker.switch_exercise(exercise_id)
    except SetpaceError as e:
        return error_response(str(e))
    return {**session_payload(tracker), "adopted_timer": adopted}


@router.post("/start-set")
async def start_set(request: Request):
    """Start a set on the current exercise."""
    tracker = await get_tracker(request)
    if tracker is None:
        return error_response("No session in progress", 404)
    if not await tracker.start_set():
        return error_response("No exercise selected")
    return session_payload(tracker)


@router.post("/complete-set")
async def complete_set(
    request: Request,
    reps: str | None = Form(None),
    weight: str | None = Form(None),
    notes: str | None = Form(None),
):
    """Stop the running set; logs it too when reps are given."""
    tracker = await get_tracker(request)
    if tracker is None:
        return error_response("No session in progress", 404)
    try:
        result = await tracker.complete_set(reps, weight, notes)
    except SetpaceError as e:
        return error_response(str(e))
    if result is None:
        return error_response("No set in progress")
    return {**session_payload(tracker), "set": result.to_dict()}


@router.post("/log-set")
async def log_set(
    request: Request,
    reps: str = Form(...),
    weight: str | None = Form(None),
    notes: str | None = Form(None),
):
    """Log reps and weight for the set just completed."""
    tracker = await get_tracker(request)
    if tracker is None:
        return error_response("No session in progress", 404)
    try:
        logged = await tracker.log_set(reps, weight, notes)
    except SetpaceError as e:
        return error_response(str(e))
    if logged is None:
        return error_response("No completed set waiting to be logged")
    return {**session_payload(tracker), "set": logged.to_dict()}


@router.post("/complete-exercise")
async def complete_exercise(
    request: Request,
    mark_complete: bool | None = Form(None),
):
    """Finish the current exercise."""
    tracker = await get_tracker(request)
    if tracker is None:
        return error_response("No session in progress", 404)
    try:
        await tracker.complete_exercise(mark_complete)
    except ConfirmationRequired as e:
        return error_response(
            str(e),
            409,
            completed_sets=e.completed_sets,
            target_sets=e.target_sets,
        )
    return session_payload(tracker)


@router.post("/notes")
async def update_notes(request: Request, notes: str = Form("")):
    """Set the session notes."""
    tracker = await get_tracker(request)
    if tracker is None:
        return error_response("No session in progress", 404)
    await tracker.update_notes(notes)
    return session_payload(tracker)


@router.post("/finish")
async def finish_session(request: Request):
    """Check out and save the workout."""
    tracker = await get_tracker(request)
    if tracker is None:
        return error_response("No session in progress", 404)
    finished = await tracker.finish()
    request.app.state.tracker = None
    return {"active": False, "session": finished.to_dict()}


@router.post("/cancel")
async def cancel_session(request: Request):
    """Discard the session in progress."""
    tracker = await get_tracker(request)
    if tracker is None:
        return error_response("No session in progress", 404)
    session_id = tracker.session_id
    await tracker.cancel()
    request.app.state.tracker = None
    return {"active": False, "cancelled": session_id}


@router.get("/history")
async def history(request: Request, limit: int = 20):
    """Completed sessions, most recent first."""
    repo = SessionRepository(request.app.state.db_path)
    sessions = await repo.list_sessions(limit)
    return {"sessions": [s.to_dict() for s in sessions]}
