"""Tracks the completion outcome of every machine in a registry."""

from typing import Callable, Dict, Optional

import structlog

from stepflow.domain.schemas import (
    MachineState,
    Outcome,
    RegistryEvent,
    RegistryEventName,
)
from stepflow.state_machines.registry import MachineRegistry
from stepflow.utils.notifier import Subscription

from .policy import (
    AggregateStrategy,
    CompletionPolicy,
    aggregate_outcomes,
    default_completion_policy,
    evaluate_machine,
)

logger = structlog.get_logger(__name__)

CompletionCallback = Callable[[str, Outcome], None]


class CompletionTracker:
    """
    Follows machines as the registry creates them.

    Subscribes once to the registry; on create it attaches to the new
    machine's snapshot stream, on destroy it detaches and forgets the
    machine. on_complete fires once per machine when it terminates.
    """

    def __init__(
        self,
        registry: MachineRegistry,
        policy: CompletionPolicy = default_completion_policy,
        aggregate: AggregateStrategy = aggregate_outcomes,
        on_complete: Optional[CompletionCallback] = None,
    ):
        self.registry = registry
        self.policy = policy
        self.aggregate = aggregate
        self.on_complete = on_complete
        self._outcomes: Dict[str, Outcome] = {}
        self._completed: set = set()
        self._machine_subscriptions: Dict[str, Subscription[MachineState]] = {}
        self._registry_subscription = registry.subscribe(self._handle_registry_event)

    def outcome(self, machine_id: str) -> Optional[Outcome]:
        return self._outcomes.get(machine_id)

    def outcomes(self) -> Dict[str, Outcome]:
        return dict(self._outcomes)

    def overall(self) -> Outcome:
        return self.aggregate(self._outcomes.values())

    def close(self) -> None:
        """Detach from the registry and from every tracked machine."""
        self._registry_subscription.unsubscribe()
        for subscription in self._machine_subscriptions.values():
            subscription.unsubscribe()
        self._machine_subscriptions.clear()

    def _handle_registry_event(self, event: RegistryEvent) -> None:
        if event.event == RegistryEventName.CREATE:
            machine_id = event.machine_id
            self._outcomes[machine_id] = Outcome.RUNNING
            self._machine_subscriptions[machine_id] = event.machine.subscribe(
                lambda state: self._handle_machine_state(machine_id, state)
            )
        elif event.event == RegistryEventName.DESTROY:
            subscription = self._machine_subscriptions.pop(event.machine_id, None)
            if subscription is not None:
                subscription.unsubscribe()
            self._outcomes.pop(event.machine_id, None)
            self._completed.discard(event.machine_id)

    def _handle_machine_state(self, machine_id: str, state: MachineState) -> None:
        outcome = evaluate_machine(state, self.policy)
        self._outcomes[machine_id] = outcome
        if state.is_terminal and machine_id not in self._completed:
            self._completed.add(machine_id)
            logger.info(
                "machine_completed",
                machine_id=machine_id,
                lifecycle=state.state.value,
                outcome=outcome.value,
                errored_steps=len(state.errored_nodes()),
            )
            if self.on_complete is not None:
                self.on_complete(machine_id, outcome)
