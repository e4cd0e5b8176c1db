from .commands import COMMAND_HANDLERS, CommandDispatcher

__all__ = ["COMMAND_HANDLERS", "CommandDispatcher"]
