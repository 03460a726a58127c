from .assembler import DeltaAssembler
from .stream_consumer import ChatClientError, ChatStreamConsumer, StreamStartError
from .widget import ERROR_MESSAGE, ChatWidget, WidgetMessage, WidgetSnapshot

__all__ = [
    "ChatClientError",
    "ChatStreamConsumer",
    "ChatWidget",
    "DeltaAssembler",
    "ERROR_MESSAGE",
    "StreamStartError",
    "WidgetMessage",
    "WidgetSnapshot",
]
