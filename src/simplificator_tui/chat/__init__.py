from .panel import ChatPanel
from .state import ChatState
from .stream_assembler import AssemblerState, ErrorKind, StreamingAssembler

__all__ = ["AssemblerState", "ChatPanel", "ChatState", "ErrorKind", "StreamingAssembler"]
