from .chunks import (
    ChunkHandle,
    ChunkInfo,
    ConcatArgument,
    StorageCapabilities,
)
from .errors import (
    ChunkAccessDeniedError,
    ChunkAlreadyExistsError,
    ChunkNotFoundError,
    ChunkStorageError,
    InvalidChunkArgumentError,
    StorageClosedError,
    UnsupportedChunkOperationError,
)

__all__ = [
    "ChunkAccessDeniedError",
    "ChunkAlreadyExistsError",
    "ChunkHandle",
    "ChunkInfo",
    "ChunkNotFoundError",
    "ChunkStorageError",
    "ConcatArgument",
    "InvalidChunkArgumentError",
    "StorageCapabilities",
    "StorageClosedError",
    "UnsupportedChunkOperationError",
]
