from .chat import ChatStreamRequest, HealthResponse
from .ip_log import IpLogEntry
from .memory import MemoryEntry, Role

__all__ = [
    "ChatStreamRequest",
    "HealthResponse",
    "IpLogEntry",
    "MemoryEntry",
    "Role",
]
