from .stream_consumer import ChatMessage, ChatState, ChatStreamConsumer

__all__ = ["ChatMessage", "ChatState", "ChatStreamConsumer"]
