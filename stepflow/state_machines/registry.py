"""
Machine registry for addressing many sequence machines by id.

Routes id-addressed commands to the right SequenceMachine and publishes
coarse RegistryEvents so listeners can discover machines as they appear and
subscribe to each one's own snapshot stream.
"""

from typing import Any, Dict, Iterable, List, Optional

import structlog

from stepflow.core.config import settings
from stepflow.core.exceptions import DuplicateMachine, MachineNotFound
from stepflow.domain.schemas import RegistryEvent, RegistryEventName
from stepflow.utils.notifier import Callback, Notifier, Subscription

from .sequence_flow import SequenceMachine, StepInput

logger = structlog.get_logger(__name__)


class MachineRegistry:
    """
    Owns the id -> SequenceMachine mapping.

    Only create() adds entries and only destroy() removes them. Machine
    errors (IllegalTransition, EmptyMachine) propagate unchanged.
    """

    def __init__(
        self,
        unknown_machine_policy: Optional[str] = None,
        reentrancy: Optional[str] = None,
    ):
        """
        Args:
            unknown_machine_policy: "ignore" drops commands for unknown ids,
                "raise" raises MachineNotFound. Defaults to settings.
            reentrancy: Passed to every machine created here. Defaults to settings.
        """
        self.unknown_machine_policy = (
            unknown_machine_policy or settings.unknown_machine_policy
        )
        self.reentrancy = reentrancy or settings.reentrancy
        self._machines: Dict[str, SequenceMachine] = {}
        self._notifier: Notifier[RegistryEvent] = Notifier()

    def __contains__(self, machine_id: object) -> bool:
        return machine_id in self._machines

    def __len__(self) -> int:
        return len(self._machines)

    def ids(self) -> List[str]:
        return list(self._machines)

    def get(self, machine_id: str) -> Optional[SequenceMachine]:
        return self._machines.get(machine_id)

    def subscribe(self, callback: Callback) -> Subscription[RegistryEvent]:
        """Receive a RegistryEvent for every create/initialize/start/next/stop/destroy."""
        return self._notifier.subscribe(callback)

    def create(self, machine_id: str) -> SequenceMachine:
        """
        Create a new machine and notify subscribers.

        Raises:
            DuplicateMachine: If machine_id is already registered
        """
        if machine_id in self._machines:
            raise DuplicateMachine(machine_id)
        machine = SequenceMachine(machine_id=machine_id, reentrancy=self.reentrancy)
        self._machines[machine_id] = machine
        logger.info("machine_created", machine_id=machine_id)
        self._notify(machine_id, RegistryEventName.CREATE)
        return machine

    def initialize(self, machine_id: str, steps: Iterable[StepInput]) -> None:
        machine = self._lookup(machine_id, "initialize")
        if machine is None:
            return
        machine.initialize(steps)
        self._notify(machine_id, RegistryEventName.INITIALIZE)

    def start(self, machine_id: str) -> None:
        machine = self._lookup(machine_id, "start")
        if machine is None:
            return
        machine.start()
        self._notify(machine_id, RegistryEventName.START)

    def advance(self, machine_id: str, error: Any = None) -> None:
        machine = self._lookup(machine_id, "advance")
        if machine is None:
            return
        machine.advance(error)
        self._notify(machine_id, RegistryEventName.NEXT)

    def stop(self, machine_id: str, error: Any = None) -> None:
        machine = self._lookup(machine_id, "stop")
        if machine is None:
            return
        machine.stop(error)
        self._notify(machine_id, RegistryEventName.STOP)

    def destroy(self, machine_id: str) -> None:
        """
        Remove a machine. Subscribers get the destroy event while the machine
        is still registered. Unknown ids are ignored under either policy.
        """
        if machine_id not in self._machines:
            return
        self._notify(machine_id, RegistryEventName.DESTROY)
        # A subscriber may have destroyed it already from inside the callback.
        if self._machines.pop(machine_id, None) is not None:
            logger.info("machine_destroyed", machine_id=machine_id)

    def _lookup(self, machine_id: str, operation: str) -> Optional[SequenceMachine]:
        machine = self._machines.get(machine_id)
        if machine is None:
            logger.warning(
                "machine_not_found",
                machine_id=machine_id,
                operation=operation,
                policy=self.unknown_machine_policy,
            )
            if self.unknown_machine_policy == "raise":
                raise MachineNotFound(machine_id, operation)
        return machine

    def _notify(self, machine_id: str, event: RegistryEventName) -> None:
        machine = self._machines.get(machine_id)
        if machine is None:
            return
        self._notifier._broadcast(
            RegistryEvent(event=event, machine_id=machine_id, machine=machine)
        )
