from mindsculpt.graph.store import MemoryGraphStore, MemoryListener

__all__ = ["MemoryGraphStore", "MemoryListener"]
