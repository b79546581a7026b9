"""Agent-local memory graph, personality profile and prompt assembly."""

__version__ = "0.1.0"
