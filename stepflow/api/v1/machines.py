"""
Machine command endpoints.

HTTP transport for the registry: a single command endpoint that accepts
command envelopes, plus read-only views of registered machines.
"""

from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from stepflow.api.dependencies import get_dispatcher, get_registry, get_tracker
from stepflow.domain.schemas import (
    CommandEnvelope,
    MachineDetail,
    MachineState,
    MachineSummary,
    Outcome,
)
from stepflow.services.completion.tracker import CompletionTracker
from stepflow.services.transport.commands import CommandDispatcher
from stepflow.state_machines.registry import MachineRegistry

router = APIRouter(prefix="/machines", tags=["machines"])
logger = structlog.get_logger(__name__)


@router.post("/commands", response_model=Optional[MachineState])
async def send_command(
    envelope: CommandEnvelope,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> Optional[MachineState]:
    """
    Run one command envelope against the registry.

    Returns:
        Snapshot of the addressed machine after the command, or null when
        no machine is registered under the id afterwards

    Raises:
        DomainException subclasses, mapped to HTTP responses by the app
    """
    return dispatcher.dispatch(envelope)


@router.get("", response_model=List[MachineSummary])
async def list_machines(
    registry: MachineRegistry = Depends(get_registry),
) -> List[MachineSummary]:
    summaries = []
    for machine_id in registry.ids():
        machine = registry.get(machine_id)
        summaries.append(
            MachineSummary(id=machine_id, state=machine.state, current=machine.current)
        )
    return summaries


@router.get("/outcome", response_model=Outcome)
async def get_overall_outcome(
    tracker: CompletionTracker = Depends(get_tracker),
) -> Outcome:
    """Aggregate completion outcome across every registered machine."""
    return tracker.overall()


@router.get("/{machine_id}", response_model=MachineDetail)
async def get_machine(
    machine_id: str,
    registry: MachineRegistry = Depends(get_registry),
) -> MachineDetail:
    """
    Get a machine's snapshot and the operations its lifecycle allows next.

    Raises:
        HTTPException: 404 if no machine is registered under machine_id
    """
    machine = registry.get(machine_id)
    if machine is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Machine '{machine_id}' not found",
        )
    snapshot = machine.snapshot()
    return MachineDetail(
        id=machine_id,
        nodes=snapshot.nodes,
        state=snapshot.state,
        current=snapshot.current,
        allowed_operations=machine.allowed_operations(),
    )
