from fastapi import Request

from stepflow.services.completion.tracker import CompletionTracker
from stepflow.services.transport.commands import CommandDispatcher
from stepflow.state_machines.registry import MachineRegistry


def get_registry(request: Request) -> MachineRegistry:
    """
    Dependency returning the registry owned by the running app
    """
    return request.app.state.registry


def get_dispatcher(request: Request) -> CommandDispatcher:
    return request.app.state.dispatcher


def get_tracker(request: Request) -> CompletionTracker:
    return request.app.state.tracker
