from .cache import FileBackedCache
from .config import CacheSettings, default_cache_root
from .logging import configure_logging
from .validation.keys import InvalidArgument

__all__ = ["FileBackedCache", "CacheSettings", "InvalidArgument", "configure_logging", "default_cache_root"]
