"""AdPulse — API Dependencies."""

from fastapi import Request

from adpulse.sync.context import SyncContext
from adpulse.sync.runner import SyncRunner


def get_context(request: Request) -> SyncContext:
    return request.app.state.ctx


def get_runner(request: Request) -> SyncRunner:
    return request.app.state.runner
