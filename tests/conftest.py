"""Shared pytest fixtures for stepflow tests."""

from typing import Callable, List

import pytest

from stepflow.domain.schemas import Step, StepState
from stepflow.state_machines.registry import MachineRegistry
from stepflow.state_machines.sequence_flow import SequenceMachine


def make_steps(count: int, **extra) -> List[Step]:
    return [
        Step(name=f"node{i}", state=StepState.CREATED, **extra)
        for i in range(1, count + 1)
    ]


@pytest.fixture
def steps_factory() -> Callable[..., List[Step]]:
    return make_steps


@pytest.fixture
def three_steps() -> List[Step]:
    return make_steps(3)


@pytest.fixture
def machine() -> SequenceMachine:
    return SequenceMachine(machine_id="m1", reentrancy="allow")


@pytest.fixture
def running_machine(three_steps: List[Step]) -> SequenceMachine:
    """A three-step machine that has been initialized and started."""
    m = SequenceMachine(machine_id="m1", reentrancy="allow")
    m.initialize(three_steps)
    m.start()
    return m


@pytest.fixture
def registry() -> MachineRegistry:
    return MachineRegistry(unknown_machine_policy="ignore", reentrancy="allow")


@pytest.fixture
def strict_registry() -> MachineRegistry:
    return MachineRegistry(unknown_machine_policy="raise", reentrancy="allow")
