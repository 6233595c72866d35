from enum import Enum


class DependencyType(str, Enum):
    BLOCKS = "blocks"
    REQUIRES = "requires"
    SUGGESTS = "suggests"

    @property
    def is_blocking(self) -> bool:
        """Hard edges gate completion; ``suggests`` is advisory only."""
        return self is not DependencyType.SUGGESTS

    @property
    def label(self) -> str:
        return self.value.capitalize()


BLOCKING_TYPES: frozenset["DependencyType"] = frozenset(
    t for t in DependencyType if t.is_blocking
)
