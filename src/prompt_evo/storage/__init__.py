"""存储 / Storage"""

from prompt_evo.storage.memory import Store, new_id
from prompt_evo.storage.file_store import FileStore

__all__ = ["Store", "FileStore", "new_id"]
