from .policy import (
    AggregateStrategy,
    CompletionPolicy,
    aggregate_outcomes,
    all_or_nothing_policy,
    default_completion_policy,
    evaluate_machine,
)
from .tracker import CompletionTracker

__all__ = [
    "AggregateStrategy",
    "CompletionPolicy",
    "CompletionTracker",
    "aggregate_outcomes",
    "all_or_nothing_policy",
    "default_completion_policy",
    "evaluate_machine",
]
