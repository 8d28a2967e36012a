from skyops.execution.dispatcher import CapabilityRegistry, ExecutionDispatcher, handler_arguments

__all__ = ["CapabilityRegistry", "ExecutionDispatcher", "handler_arguments"]
