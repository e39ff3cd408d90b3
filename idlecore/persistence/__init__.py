from idlecore.persistence.migrations import MIGRATIONS, migrate
from idlecore.persistence.serialize import dumps, from_dict, loads, to_dict
from idlecore.persistence.storage import FileStorage, MemoryStorage, StorageAdapter
from idlecore.persistence.save_manager import (
    LoadResult,
    SaveManager,
    SaveResult,
    SaveSlotMetadata,
)

__all__ = [
    "MIGRATIONS",
    "migrate",
    "to_dict",
    "from_dict",
    "dumps",
    "loads",
    "StorageAdapter",
    "MemoryStorage",
    "FileStorage",
    "SaveManager",
    "SaveResult",
    "LoadResult",
    "SaveSlotMetadata",
]
