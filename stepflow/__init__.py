"""
stepflow: observable state machines over ordered step sequences.

A SequenceMachine drives one list of steps through created -> ready ->
running -> (done | stopped). A MachineRegistry addresses many of them by id
and publishes registry events so listeners can attach to each machine.
"""

from stepflow.core.exceptions import (
    DomainException,
    DuplicateMachine,
    EmptyMachine,
    IllegalTransition,
    MachineNotFound,
    ReentrantTransition,
)
from stepflow.domain.schemas import (
    Command,
    CommandEnvelope,
    MachineLifecycle,
    MachineState,
    Outcome,
    RegistryEvent,
    RegistryEventName,
    Step,
    StepState,
)
from stepflow.state_machines import MachineRegistry, SequenceMachine
from stepflow.utils.notifier import Notifier, Subscription

__all__ = [
    "Command",
    "CommandEnvelope",
    "DomainException",
    "DuplicateMachine",
    "EmptyMachine",
    "IllegalTransition",
    "MachineLifecycle",
    "MachineNotFound",
    "MachineRegistry",
    "MachineState",
    "Notifier",
    "Outcome",
    "ReentrantTransition",
    "RegistryEvent",
    "RegistryEventName",
    "SequenceMachine",
    "Step",
    "StepState",
    "Subscription",
]
