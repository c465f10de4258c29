"""Value types exchanged between the segment engine and chunk storage."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ChunkHandle:
    """Identifies an open chunk for read or write."""

    chunk_name: str
    is_read_only: bool

    @classmethod
    def read_handle(cls, chunk_name: str) -> "ChunkHandle":
        return cls(chunk_name=chunk_name, is_read_only=True)

    @classmethod
    def write_handle(cls, chunk_name: str) -> "ChunkHandle":
        return cls(chunk_name=chunk_name, is_read_only=False)


@dataclass(frozen=True, slots=True)
class ChunkInfo:
    """Point-in-time snapshot of chunk metadata."""

    name: str
    length: int


@dataclass(frozen=True, slots=True)
class ConcatArgument:
    """One entry of a concat request: a chunk and the number of bytes to take from it."""

    name: str
    length: int

    @classmethod
    def from_info(cls, info: ChunkInfo) -> "ConcatArgument":
        return cls(name=info.name, length=info.length)


@dataclass(frozen=True, slots=True)
class StorageCapabilities:
    """Optional operations a chunk storage backend supports."""

    supports_concat: bool
    supports_append: bool
    supports_truncation: bool
