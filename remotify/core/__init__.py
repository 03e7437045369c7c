"""Core services: shared state, caches, pagination, dispatcher, background refresh."""
from remotify.core.dispatcher import RequestDispatcher
from remotify.core.state import SharedAppState

__all__ = ["RequestDispatcher", "SharedAppState"]
