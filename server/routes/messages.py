"""Message channel: one endpoint accepting every command the extension sends."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from ..models import parse_command
from ..state import get_state

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("")
async def post_message(message: Dict[str, Any] = Body(...)):
    """Dispatch a typed command (e.g. {"type": "reader/heartbeat", ...})."""
    try:
        command = parse_command(message)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e
    logger.debug("[messages] RECEIVED type=%s", command.type)
    return await get_state().dispatcher.dispatch(command)
