"""
State machine infrastructure for step sequences.

This package provides the per-sequence lifecycle machine and the registry
that addresses many of them by id.
"""

from .base import FlowMachine
from .registry import MachineRegistry
from .sequence_flow import REQUIRED_STATE, SequenceLifecycle, SequenceMachine

__all__ = [
    "FlowMachine",
    "MachineRegistry",
    "REQUIRED_STATE",
    "SequenceLifecycle",
    "SequenceMachine",
]
