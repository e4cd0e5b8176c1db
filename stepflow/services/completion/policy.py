"""
Completion policies.

A completion policy turns the final step list of a terminated machine into
an Outcome. An aggregate strategy rolls the outcomes of many machines into
one global Outcome.
"""

from typing import Callable, Iterable, Sequence

from stepflow.domain.schemas import MachineState, Outcome, Step, StepState

CompletionPolicy = Callable[[Sequence[Step], Sequence[Step]], Outcome]
AggregateStrategy = Callable[[Iterable[Outcome]], Outcome]


def default_completion_policy(
    all_steps: Sequence[Step], errored_steps: Sequence[Step]
) -> Outcome:
    """Error if any step errored, done otherwise."""
    return Outcome.ERROR if errored_steps else Outcome.DONE


def all_or_nothing_policy(
    all_steps: Sequence[Step], errored_steps: Sequence[Step]
) -> Outcome:
    """
    Done only when every step finished as done.

    A machine stopped early leaves trailing steps in created, which
    counts as error here but as done under default_completion_policy.
    """
    if all(step.state == StepState.DONE for step in all_steps):
        return Outcome.DONE
    return Outcome.ERROR


def evaluate_machine(
    state: MachineState, policy: CompletionPolicy = default_completion_policy
) -> Outcome:
    """
    Outcome of one machine from its snapshot.

    Running until the machine is done or stopped; after that, whatever the
    policy decides.
    """
    if not state.is_terminal:
        return Outcome.RUNNING
    return policy(state.nodes, state.errored_nodes())


def aggregate_outcomes(outcomes: Iterable[Outcome]) -> Outcome:
    """
    Roll many machine outcomes into one.

    Running wins over everything, then error, then done. No machines means done.
    """
    result = Outcome.DONE
    for outcome in outcomes:
        if outcome == Outcome.RUNNING:
            return Outcome.RUNNING
        if outcome == Outcome.ERROR:
            result = Outcome.ERROR
    return result
