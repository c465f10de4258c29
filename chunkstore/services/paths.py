from __future__ import annotations

from dataclasses import dataclass

from chunkstore.common.config import normalize_prefix


@dataclass(frozen=True, slots=True)
class ObjectPathResolver:
    """Maps chunk names onto object keys under a fixed prefix."""

    prefix: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "prefix", normalize_prefix(self.prefix))

    def resolve(self, chunk_name: str) -> str:
        return self.prefix + chunk_name
