"""symposium-chat: tab/session coordinator between a chat surface and an agent."""

__version__ = "0.1.0"
