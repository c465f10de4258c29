from .chunk_storage import CAPABILITIES, ObjectChunkStorage
from .concat import MultipartConcatOrchestrator, MultipartSession
from .error_translation import translate_error, translated_errors
from .factory import ChunkStorageFactory, create_storage_factory, get_storage_factories
from .paths import ObjectPathResolver
from .permissions import PermissionManager

__all__ = [
    "CAPABILITIES",
    "ChunkStorageFactory",
    "MultipartConcatOrchestrator",
    "MultipartSession",
    "ObjectChunkStorage",
    "ObjectPathResolver",
    "PermissionManager",
    "create_storage_factory",
    "get_storage_factories",
    "translate_error",
    "translated_errors",
]
