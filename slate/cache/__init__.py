from .fs_cache import CacheSnapshot, FileCache, MemoryCache, template_identity

__all__ = ["CacheSnapshot", "FileCache", "MemoryCache", "template_identity"]
