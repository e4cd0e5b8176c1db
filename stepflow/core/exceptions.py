"""Custom exceptions for domain-specific errors"""

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base exception for all domain errors"""

    error_code = "DOMAIN_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# Machine lifecycle errors
class IllegalTransition(DomainException):
    """Raised when an operation is invoked outside its required lifecycle state"""

    error_code = "ILLEGAL_TRANSITION"

    def __init__(self, operation: str, required_state: str, actual_state: str):
        self.operation = operation
        self.required_state = required_state
        self.actual_state = actual_state
        super().__init__(
            message=(
                f"Illegal state: {operation}() called when machine is not "
                f"{required_state}. Current state: {actual_state}"
            ),
            details={
                "operation": operation,
                "required_state": required_state,
                "actual_state": actual_state,
            },
        )


class EmptyMachine(DomainException):
    """Raised when start() is called on a machine with no steps"""

    error_code = "EMPTY_MACHINE"

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Illegal state: start() called with empty machine.",
            details=details,
        )


class ReentrantTransition(DomainException):
    """Raised when a subscriber mutates the machine that is notifying it and reentrancy is denied"""

    error_code = "REENTRANT_TRANSITION"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            message=f"Illegal operation {operation}(): machine is broadcasting a transition.",
            details={"operation": operation},
        )


# Registry errors
class DuplicateMachine(DomainException):
    """Raised when create() is called with an id that is already registered"""

    error_code = "DUPLICATE_MACHINE"

    def __init__(self, machine_id: str):
        self.machine_id = machine_id
        super().__init__(
            message=f"Illegal operation create(): Machine with id '{machine_id}' already exist.",
            details={"machine_id": machine_id},
        )


class MachineNotFound(DomainException):
    """Raised for an unregistered id when the registry runs with the strict policy"""

    error_code = "MACHINE_NOT_FOUND"

    def __init__(self, machine_id: str, operation: Optional[str] = None):
        self.machine_id = machine_id
        self.operation = operation
        super().__init__(
            message=f"Machine with id '{machine_id}' does not exist.",
            details={"machine_id": machine_id, "operation": operation},
        )
