# app/routers/console.py
"""
Live reservations console.
Endpoints are async: alerts and their timers live on the event loop.
A browser opens a session, then polls GET /console/sessions/{sid} for the two lists
and the alert. When alert.cue_sequence changes it plays /console/chime.wav.
Sessions belong to the operator who opened them; any request keeps one alive.
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from typing import Optional

from app.dependencies import get_console_registry, require_operator
from app.schemas.console import AlertOut, ConsoleSessionOut
from app.schemas.reservation import Reservation
from app.services.auth import Operator
from app.services.console_session import ConsoleRegistry, ConsoleSession
from app.utils.chime import render_chime_wav

router = APIRouter()

_CHIME_WAV = render_chime_wav()


def _own_session(registry: ConsoleRegistry, session_id: str, operator: Operator) -> ConsoleSession:
    session = registry.get(session_id, operator=operator.email)
    if session is None:
        raise HTTPException(status_code=404, detail="Console session not found")
    session.touch()
    return session


@router.post("/console/sessions", response_model=ConsoleSessionOut, status_code=201,
             summary="Open a live reservations console")
async def open_session(operator: Operator = Depends(require_operator),
                       registry: ConsoleRegistry = Depends(get_console_registry)):
    session = registry.open(operator.email)
    return session.to_out(registry.feed)


@router.get("/console/sessions/{session_id}", response_model=ConsoleSessionOut,
            summary="Pending + completed lists and alert state")
async def get_session(session_id: str, operator: Operator = Depends(require_operator),
                      registry: ConsoleRegistry = Depends(get_console_registry)):
    return _own_session(registry, session_id, operator).to_out(registry.feed)


@router.post("/console/sessions/{session_id}/alert/dismiss", response_model=AlertOut,
             summary="Close the new-reservation popup")
async def dismiss_alert(session_id: str, operator: Operator = Depends(require_operator),
                        registry: ConsoleRegistry = Depends(get_console_registry)):
    session = _own_session(registry, session_id, operator)
    session.alert.dismiss()
    return session.alert.snapshot()


@router.post("/console/sessions/{session_id}/alert/view", response_model=Optional[Reservation],
             summary="Close the popup and open its reservation")
async def view_alert(session_id: str, operator: Operator = Depends(require_operator),
                     registry: ConsoleRegistry = Depends(get_console_registry)):
    return _own_session(registry, session_id, operator).alert.view()


@router.delete("/console/sessions/{session_id}", status_code=204, summary="Close a console")
async def close_session(session_id: str, operator: Operator = Depends(require_operator),
                        registry: ConsoleRegistry = Depends(get_console_registry)):
    _own_session(registry, session_id, operator)
    registry.close(session_id)
    return Response(status_code=204)


@router.get("/console/chime.wav", summary="New-reservation chime")
def chime():
    return Response(content=_CHIME_WAV, media_type="audio/wav",
                    headers={"Cache-Control": "public, max-age=86400"})
