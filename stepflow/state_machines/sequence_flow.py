"""
Sequence Flow State Machine.

Drives an ordered list of steps through created -> ready -> running ->
(done | stopped) and publishes a full snapshot after every accepted
transition.
"""

import copy
from typing import Any, Iterable, List, Mapping, Optional, Union

import structlog
from statemachine import State

from stepflow.core.config import settings
from stepflow.core.exceptions import (
    EmptyMachine,
    IllegalTransition,
    ReentrantTransition,
)
from stepflow.domain.schemas import MachineLifecycle, MachineState, Step, StepState
from stepflow.utils.notifier import Callback, Notifier, Subscription

from .base import FlowMachine

logger = structlog.get_logger(__name__)

StepInput = Union[Step, Mapping[str, Any]]

# Lifecycle each public operation must find the machine in.
REQUIRED_STATE = {
    "initialize": MachineLifecycle.CREATED,
    "start": MachineLifecycle.READY,
    "advance": MachineLifecycle.RUNNING,
    "stop": MachineLifecycle.RUNNING,
}


class SequenceLifecycle(FlowMachine):
    """
    Lifecycle of one sequence machine.

    Holds no step data; asks the owning SequenceMachine for the guards.
    """

    created = State(initial=True, value=MachineLifecycle.CREATED)
    ready = State(value=MachineLifecycle.READY)
    running = State(value=MachineLifecycle.RUNNING)
    done = State(value=MachineLifecycle.DONE, final=True)
    stopped = State(value=MachineLifecycle.STOPPED, final=True)

    initialize = created.to(ready)
    start = ready.to(running, cond="has_steps")
    advance = running.to(done, cond="is_last_step") | running.to(running)
    stop = running.to(stopped)

    def __init__(self, sequence: "SequenceMachine", **kwargs):
        self.sequence = sequence
        super().__init__(**kwargs)

    def has_steps(self) -> bool:
        """Guard: the machine has at least one step."""
        return len(self.sequence._nodes) > 0

    def is_last_step(self) -> bool:
        """Guard: the cursor points at the final step."""
        return self.sequence._current >= len(self.sequence._nodes) - 1

    def after_initialize(self):
        self.log_transition("initialize", "created", "ready")

    def after_start(self):
        self.log_transition("start", "ready", "running")

    def after_advance(self):
        self.log_transition("advance", "running", self.current_state.id)

    def after_stop(self):
        self.log_transition("stop", "running", "stopped")


def _copy_step(item: StepInput) -> Step:
    if isinstance(item, Step):
        return item.model_copy(update={"state": StepState.CREATED}, deep=True)
    data = copy.deepcopy(dict(item))
    data["state"] = StepState.CREATED
    return Step.model_validate(data)


class SequenceMachine:
    """
    Finite-state machine over one ordered list of steps.

    Every operation is checked against the current lifecycle first. On a
    mismatch IllegalTransition is raised and nothing changes. Subscribers
    receive a MachineState copy after each accepted operation.
    """

    def __init__(
        self,
        machine_id: Optional[str] = None,
        reentrancy: Optional[str] = None,
    ):
        self.machine_id = machine_id
        self.reentrancy = reentrancy or settings.reentrancy
        self._nodes: List[Step] = []
        self._current = -1
        self._notifier: Notifier[MachineState] = Notifier()
        self._broadcast_depth = 0
        self._lifecycle = SequenceLifecycle(self, flow_id=machine_id)

    def __repr__(self) -> str:
        return (
            f"SequenceMachine(id={self.machine_id!r}, state={self.state.value}, "
            f"current={self._current}, nodes={len(self._nodes)})"
        )

    @property
    def state(self) -> MachineLifecycle:
        return self._lifecycle.current_state_value

    @property
    def current(self) -> int:
        return self._current

    @property
    def nodes(self) -> List[Step]:
        return [node.model_copy() for node in self._nodes]

    @property
    def is_terminal(self) -> bool:
        return self._lifecycle.current_state.final

    def snapshot(self) -> MachineState:
        return MachineState(nodes=self.nodes, state=self.state, current=self._current)

    def allowed_operations(self) -> List[str]:
        return [op for op, required in REQUIRED_STATE.items() if required == self.state]

    def subscribe(self, callback: Callback) -> Subscription[MachineState]:
        """Receive a MachineState snapshot after every accepted operation."""
        return self._notifier.subscribe(callback)

    def initialize(self, steps: Iterable[StepInput]) -> None:
        """
        Load the steps. The input list and its items are copied, never aliased,
        and every copy starts in the created state.

        initialize() can be called only once.
        """
        self._require("initialize")
        nodes = [_copy_step(item) for item in steps]
        self._lifecycle.initialize()
        self._nodes = nodes
        self._current = 0
        self._publish()

    def start(self) -> None:
        """Put the machine and its first step in the running state."""
        self._require("start")
        if not self._nodes:
            raise EmptyMachine(details={"machine_id": self.machine_id})
        self._lifecycle.start()
        self._current = 0
        self._nodes[self._current].state = StepState.RUNNING
        self._publish()

    def advance(self, error: Any = None) -> None:
        """
        Finish the current step (error if `error` is truthy, done otherwise)
        and run the next one. Finishing the last step completes the machine.
        """
        self._require("advance")
        self._finish_current(error)
        self._lifecycle.advance()
        if self._lifecycle.current_state_value == MachineLifecycle.RUNNING:
            self._current += 1
            self._nodes[self._current].state = StepState.RUNNING
        self._publish()

    def stop(self, error: Any = None) -> None:
        """Finish the current step without moving the cursor and stop the machine."""
        self._require("stop")
        self._finish_current(error)
        self._lifecycle.stop()
        self._publish()

    def _require(self, operation: str) -> None:
        if self._broadcast_depth and self.reentrancy == "deny":
            raise ReentrantTransition(operation)
        required = REQUIRED_STATE[operation]
        actual = self.state
        if actual != required:
            logger.debug(
                "illegal_transition",
                machine_id=self.machine_id,
                operation=operation,
                required_state=required.value,
                actual_state=actual.value,
            )
            raise IllegalTransition(operation, required.value, actual.value)

    def _finish_current(self, error: Any) -> None:
        node = self._nodes[self._current]
        if error:
            node.state = StepState.ERROR
            node.error = error
        else:
            node.state = StepState.DONE

    def _publish(self) -> None:
        snapshot = self.snapshot()
        self._broadcast_depth += 1
        try:
            self._notifier._broadcast(snapshot)
        finally:
            self._broadcast_depth -= 1
