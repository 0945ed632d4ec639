# core/bootstrap.py

"""
Wires one classroom's client objects together from `Settings`.

Provides `open_classroom()`, which configures logging, builds the HTTP client and gateway,
loads the classroom onto a fresh `TaskBoard`, and hands back the command surfaces bound to
that board.
"""

from __future__ import annotations

import logging

import httpx

from core.config import Settings, configure_logging
from core.grading_session import GradingSession
from core.prompts import Confirm, console_confirm
from core.response import Response
from core.submission_lifecycle import SubmissionLifecycleManager
from core.task_gateway import TaskCommands, TaskGateway
from core.transport import build_client
from models.task_board import TaskBoard

logger = logging.getLogger(__name__)


def open_classroom(
    classroom_id: str,
    actor_email: str,
    settings: Settings | None = None,
    transport: httpx.BaseTransport | None = None,
    confirm: Confirm = console_confirm,
    scheduler=None,
) -> Response:
    """
    Loads a classroom and builds everything needed to work with it.

    Args:
        classroom_id (str): The classroom to open.
        actor_email (str): The signed-in user; sent with every request.
        settings (Settings | None): Read from the environment when omitted.
        transport (httpx.BaseTransport | None): Replaces the network transport (mainly for tests).
        confirm (Confirm): Confirmation prompt shared by deletes and resubmissions.
        scheduler: Runs the post-submit resync; a `TimerScheduler` when omitted.

    Returns:
        Response: A structured response with the following contract:
            - success (bool): True if the classroom was fetched and parsed.
            - error (ErrorCode | None): Whatever `TaskGateway.fetch_classroom()` reported.
            - data (dict): On success:
                - "settings" (Settings)
                - "board" (TaskBoard), sized by `settings.history_limit`
                - "gateway" (TaskGateway)
                - "commands" (TaskCommands)
                - "lifecycle" (SubmissionLifecycleManager), delayed by `settings.resync_delay`
                - "grading" (GradingSession)

    Raises:
        ValueError: If settings are read from the environment and a value is invalid.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    client = build_client(settings, transport=transport)
    gateway = TaskGateway(client, confirm=confirm, actor_email=actor_email)

    response = gateway.fetch_classroom(classroom_id)
    if not response.success:
        logger.error("Could not open classroom %s: %s", classroom_id, response.detail)
        client.close()
        return response

    board = TaskBoard(response.data["classroom"], history_limit=settings.history_limit)
    logger.info("Opened classroom %s with %s task(s)", classroom_id, len(board.tasks))

    return Response.succeed(
        detail=f"Classroom {classroom_id} loaded.",
        status_code=response.status_code,
        data={
            "settings": settings,
            "board": board,
            "gateway": gateway,
            "commands": TaskCommands(board, gateway, actor_email),
            "lifecycle": SubmissionLifecycleManager(
                board,
                gateway,
                confirm=confirm,
                scheduler=scheduler,
                resync_delay=settings.resync_delay,
            ),
            "grading": GradingSession(board, gateway, actor_email),
        },
    )
