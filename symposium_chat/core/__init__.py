"""Host-agnostic coordination core."""

from .agent import AgentBackend, EchoAgent, load_agent
from .buffer import MessageBuffer
from .coordinator import SessionCoordinator
from .persistence import JsonFileStore, KeyValueStore, MemoryStore, StatePersistence
from .relay import StreamRelay
from .sessions import TabSessionMap

__all__ = [
    "AgentBackend",
    "EchoAgent",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "MessageBuffer",
    "SessionCoordinator",
    "StatePersistence",
    "StreamRelay",
    "TabSessionMap",
    "load_agent",
]
