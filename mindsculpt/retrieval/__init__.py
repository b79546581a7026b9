from mindsculpt.retrieval.search import SearchCriteria, filter_memories

__all__ = ["SearchCriteria", "filter_memories"]
