"""Exception hierarchy shared by the memory, personality and storage layers."""


class MindSculptError(Exception):
    """Base class for errors raised by mindsculpt."""


class MemoryNotFoundError(MindSculptError, KeyError):
    """A memory id referenced by update, delete or link does not exist."""

    def __init__(self, memory_id: str) -> None:
        super().__init__(memory_id)
        self.memory_id = memory_id

    def __str__(self) -> str:
        return f"Memory with id {self.memory_id} not found"


class TraitValidationError(MindSculptError, ValueError):
    """A personality trait value outside [0, 1] was written directly."""

    def __init__(self, trait: str, value: object) -> None:
        super().__init__(f"Trait '{trait}' must be a number between 0 and 1, got {value!r}")
        self.trait = trait
        self.value = value


class PersistenceError(MindSculptError):
    """Loading or saving a snapshot failed."""
