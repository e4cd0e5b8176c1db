"""
Remote command transport.

Maps the closed Command set to registry operations through a fixed table.
The dispatcher holds a registry; it is not one.
"""

from typing import Any, Callable, Dict, Mapping, Optional

import structlog
from pydantic import ValidationError

from stepflow.domain.schemas import (
    Command,
    CommandData,
    CommandEnvelope,
    MachineState,
)
from stepflow.state_machines.registry import MachineRegistry

logger = structlog.get_logger(__name__)

Handler = Callable[[MachineRegistry, str, CommandData], Any]


def _create(registry: MachineRegistry, machine_id: str, data: CommandData) -> None:
    registry.create(machine_id)


def _initialize(registry: MachineRegistry, machine_id: str, data: CommandData) -> None:
    registry.initialize(machine_id, data.nodes or [])


def _start(registry: MachineRegistry, machine_id: str, data: CommandData) -> None:
    registry.start(machine_id)


def _next(registry: MachineRegistry, machine_id: str, data: CommandData) -> None:
    registry.advance(machine_id, data.error)


def _stop(registry: MachineRegistry, machine_id: str, data: CommandData) -> None:
    registry.stop(machine_id, data.error)


def _destroy(registry: MachineRegistry, machine_id: str, data: CommandData) -> None:
    registry.destroy(machine_id)


COMMAND_HANDLERS: Dict[Command, Handler] = {
    Command.CREATE: _create,
    Command.INITIALIZE: _initialize,
    Command.START: _start,
    Command.NEXT: _next,
    Command.STOP: _stop,
    Command.DESTROY: _destroy,
}


class CommandDispatcher:
    def __init__(self, registry: MachineRegistry):
        self.registry = registry

    def dispatch(self, envelope: CommandEnvelope) -> Optional[MachineState]:
        """
        Run one command against the registry.

        Args:
            envelope: Validated command envelope

        Returns:
            The machine's snapshot after the command, or None if no machine
            is registered under the id afterwards (destroyed or never created)

        Raises:
            DuplicateMachine, IllegalTransition, EmptyMachine, MachineNotFound:
                Propagated from the registry
        """
        handler = COMMAND_HANDLERS[envelope.command]
        data = envelope.data or CommandData()

        with structlog.contextvars.bound_contextvars(
            machine_id=envelope.id, command=envelope.command.value
        ):
            handler(self.registry, envelope.id, data)
            machine = self.registry.get(envelope.id)
            logger.info(
                "command_dispatched",
                state=machine.state.value if machine else None,
            )
            return machine.snapshot() if machine else None

    def receive(self, message: Mapping[str, Any]) -> Optional[MachineState]:
        """
        Validate a raw message and dispatch it.

        Messages that do not parse into an envelope (including unknown
        commands) are logged and dropped.
        """
        try:
            envelope = CommandEnvelope.model_validate(message)
        except ValidationError as e:
            logger.warning(
                "command_rejected",
                command=message.get("command") if isinstance(message, Mapping) else None,
                errors=e.error_count(),
            )
            return None
        return self.dispatch(envelope)
