from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StepState(str, Enum):
    CREATED = "created"
    READY = "ready"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"
    STOPPED = "stopped"


class MachineLifecycle(str, Enum):
    """Lifecycle of a machine as a whole. Shares names with StepState but is a separate space."""

    CREATED = "created"
    READY = "ready"
    RUNNING = "running"
    DONE = "done"
    STOPPED = "stopped"


TERMINAL_LIFECYCLES = frozenset({MachineLifecycle.DONE, MachineLifecycle.STOPPED})


class Outcome(str, Enum):
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"


class RegistryEventName(str, Enum):
    CREATE = "create"
    INITIALIZE = "initialize"
    START = "start"
    NEXT = "next"
    STOP = "stop"
    DESTROY = "destroy"


class Command(str, Enum):
    CREATE = "create"
    INITIALIZE = "initialize"
    START = "start"
    NEXT = "next"
    STOP = "stop"
    DESTROY = "destroy"


# Machine Schemas
class Step(BaseModel):
    """
    One named unit of work. Identity is its position in the machine's list.

    Extra fields supplied by callers are kept as-is; the machine never reads them.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    state: StepState = StepState.CREATED
    error: Any = None


class MachineState(BaseModel):
    nodes: List[Step] = Field(default_factory=list)
    state: MachineLifecycle = MachineLifecycle.CREATED
    current: int = -1

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_LIFECYCLES

    def errored_nodes(self) -> List[Step]:
        return [node for node in self.nodes if node.state == StepState.ERROR]


class RegistryEvent(BaseModel):
    """Coarse registry notification: which machine, which lifecycle event."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    event: RegistryEventName
    machine_id: str
    machine: Any


# Transport Schemas
class CommandData(BaseModel):
    nodes: Optional[List[Step]] = None
    error: Any = None


class CommandEnvelope(BaseModel):
    id: str = Field(..., min_length=1)
    command: Command
    data: Optional[CommandData] = None


class MachineSummary(BaseModel):
    id: str
    state: MachineLifecycle
    current: int


class MachineDetail(MachineState):
    id: str
    allowed_operations: List[str] = Field(default_factory=list)
