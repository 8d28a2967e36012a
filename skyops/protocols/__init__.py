from skyops.protocols.display import ApprovalListener, DisplaySink
from skyops.protocols.execution import DirectiveHandler, Dispatcher

__all__ = ["ApprovalListener", "DirectiveHandler", "Dispatcher", "DisplaySink"]
