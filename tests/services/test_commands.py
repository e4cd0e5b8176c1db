"""Tests for the command transport dispatcher."""

import pytest

from stepflow.core.exceptions import DuplicateMachine, IllegalTransition, MachineNotFound
from stepflow.domain.schemas import (
    Command,
    CommandEnvelope,
    MachineLifecycle,
    RegistryEventName,
    StepState,
)
from stepflow.services.transport.commands import COMMAND_HANDLERS, CommandDispatcher

NODES = [{"name": f"node{i}", "state": "created"} for i in (1, 2, 3)]


@pytest.fixture
def dispatcher(registry) -> CommandDispatcher:
    return CommandDispatcher(registry)


class TestCommandTable:
    def test_every_command_has_a_handler(self):
        assert set(COMMAND_HANDLERS) == set(Command)

    def test_dispatcher_does_not_subclass_registry(self, dispatcher, registry):
        assert dispatcher.registry is registry
        assert not hasattr(dispatcher, "create")


class TestDispatch:
    def test_full_run_through_messages(self, dispatcher, registry):
        events = []
        registry.subscribe(lambda e: events.append(e.event))

        dispatcher.receive({"id": "m0", "command": "create"})
        dispatcher.receive({"id": "m0", "command": "initialize", "data": {"nodes": NODES}})
        dispatcher.receive({"id": "m0", "command": "start"})
        dispatcher.receive({"id": "m0", "command": "next"})
        snapshot = dispatcher.receive({"id": "m0", "command": "stop"})

        assert events == [
            RegistryEventName.CREATE,
            RegistryEventName.INITIALIZE,
            RegistryEventName.START,
            RegistryEventName.NEXT,
            RegistryEventName.STOP,
        ]
        assert snapshot.state == MachineLifecycle.STOPPED
        assert snapshot.current == 1
        assert snapshot.nodes[1].state == StepState.DONE

    def test_next_and_stop_forward_error(self, dispatcher):
        dispatcher.dispatch(CommandEnvelope(id="m0", command=Command.CREATE))
        dispatcher.receive({"id": "m0", "command": "initialize", "data": {"nodes": NODES}})
        dispatcher.receive({"id": "m0", "command": "start"})

        after_next = dispatcher.receive(
            {"id": "m0", "command": "next", "data": {"error": "step failed"}}
        )
        after_stop = dispatcher.receive(
            {"id": "m0", "command": "stop", "data": {"error": {"code": 7}}}
        )

        assert after_next.nodes[0].state == StepState.ERROR
        assert after_next.nodes[0].error == "step failed"
        assert after_stop.nodes[1].error == {"code": 7}
        assert after_stop.state == MachineLifecycle.STOPPED

    def test_initialize_without_data_loads_no_steps(self, dispatcher, registry):
        dispatcher.receive({"id": "m0", "command": "create"})
        snapshot = dispatcher.receive({"id": "m0", "command": "initialize"})
        assert snapshot.state == MachineLifecycle.READY
        assert snapshot.nodes == []

    def test_destroy_returns_none(self, dispatcher, registry):
        dispatcher.receive({"id": "m0", "command": "create"})
        assert dispatcher.receive({"id": "m0", "command": "destroy"}) is None
        assert "m0" not in registry

    def test_unknown_id_returns_none(self, dispatcher):
        assert dispatcher.receive({"id": "ghost", "command": "start"}) is None

    def test_registry_errors_propagate(self, dispatcher):
        dispatcher.receive({"id": "m0", "command": "create"})
        with pytest.raises(DuplicateMachine):
            dispatcher.receive({"id": "m0", "command": "create"})
        with pytest.raises(IllegalTransition):
            dispatcher.receive({"id": "m0", "command": "next"})

    def test_strict_registry_raises_for_unknown_id(self, strict_registry):
        dispatcher = CommandDispatcher(strict_registry)
        with pytest.raises(MachineNotFound):
            dispatcher.receive({"id": "ghost", "command": "start"})


class TestReceiveValidation:
    @pytest.mark.parametrize(
        "message",
        [
            {"id": "m0", "command": "subscribe"},
            {"id": "m0", "command": "__init__"},
            {"command": "create"},
            {"id": "", "command": "create"},
            {"id": "m0", "command": "initialize", "data": {"nodes": [{"state": "created"}]}},
        ],
    )
    def test_invalid_messages_are_dropped(self, dispatcher, registry, message):
        assert dispatcher.receive(message) is None
        assert len(registry) == 0
