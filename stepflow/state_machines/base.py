"""
Base state machine class for all flow state machines.

Provides structured transition logging and the current lifecycle value.
"""

from typing import Optional

import structlog
from statemachine import StateMachine


class FlowMachine(StateMachine):
    """
    Base class for all flow state machines.

    Features:
    - Structured logging on every transition
    - flow_id carried into every log line
    - current_state_value holds the lifecycle enum member
    """

    def __init__(self, flow_id: Optional[str] = None, **kwargs):
        """
        Initialize flow machine.

        Args:
            flow_id: Identifier of the owning flow, used for logging only
            **kwargs: Additional context passed to StateMachine
        """
        self.flow_id = flow_id
        self.logger = structlog.get_logger(__name__)
        super().__init__(**kwargs)

    def log_transition(self, event: str, from_state: str, to_state: str):
        """
        Log state transition with structured logging.

        Args:
            event: Event name that triggered transition
            from_state: Previous state
            to_state: New state
        """
        self.logger.info(
            "state_transition",
            transition_event=event,
            from_state=from_state,
            to_state=to_state,
            flow_id=self.flow_id,
        )
