import os
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .config import DEFAULT_CONFIG_FILE, load_settings
from .logging_utility import logger
from .netcfg.dispatcher import EventDispatcher
from .netcfg.exceptions import ConfigurationError
from .netcfg.models import ConnectionParameters, Reason, SessionResult


app = FastAPI(title="Tunnel Config")
dispatcher = EventDispatcher(load_settings(os.environ.get("TUNNEL_CONFIG_FILE", DEFAULT_CONFIG_FILE)))


class LifecycleEvent(BaseModel):
    reason: str
    parameters: Dict[str, str] = Field(default_factory=dict)


class ActionReport(BaseModel):
    kind: str
    command: List[str]
    exit_code: int
    output: str


class EventReport(BaseModel):
    reason: str
    status: int
    succeeded: bool
    actions: List[ActionReport]
    log: List[str]


def _report(result: SessionResult) -> EventReport:
    return EventReport(
        reason=result.reason.value,
        status=result.status,
        succeeded=result.succeeded,
        actions=[
            ActionReport(
                kind=outcome.action.kind.value,
                command=outcome.command,
                exit_code=outcome.exit_code,
                output=outcome.output,
            )
            for outcome in result.outcomes
        ],
        log=list(result.log_lines),
    )


@app.get("/health")
def health():
    return {"status": "ok", "redirect_method": dispatcher.settings.redirect_method.name}


@app.post("/events", response_model=EventReport)
def handle_event(event: LifecycleEvent):
    """Run one lifecycle event and report the accumulated status"""
    try:
        reason = Reason.parse(event.reason)
    except ConfigurationError as e:
        logger.error(f"Rejected {event.reason} event: {str(e)}")
        raise HTTPException(status_code=422, detail=str(e))
    params = ConnectionParameters.from_environ(event.parameters)

    try:
        result = dispatcher.dispatch(reason, params)
    except Exception as e:
        logger.error(f"Error handling {reason.value} event: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to process event")
    return _report(result)


@app.get("/last_result", response_model=EventReport)
def last_result():
    """Report of the most recent event"""
    result: Optional[SessionResult] = dispatcher.last_result
    if result is None:
        raise HTTPException(status_code=404, detail="No event processed yet")
    return _report(result)
