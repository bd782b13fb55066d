"""Identity indexer engine — identity set, group map and copy counters."""

from varkeeper.engines.identity_indexer.indexer import LibraryIndex, build_index

__all__ = ["LibraryIndex", "build_index"]
