"""Versioned document cache.

Editors query the same document many times between edits. The cache keeps
the last Document parsed for each uri, keyed by the editor's version number,
and serialises parses per uri so at most one parse of a document runs at a
time; callers waiting on the same version reuse the stored result.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from . import ast
from .config import ParseOptions
from .parser import parse

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    version: int
    document: ast.Document


@dataclass
class _UriLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0  # callers holding or waiting on `lock`


class DocumentCache:
    def __init__(self, options: ParseOptions | None = None):
        self.options = options
        self.hits = 0
        self.misses = 0
        self._entries: dict[str, CacheEntry] = {}
        self._locks: dict[str, _UriLock] = {}
        self._guard = threading.Lock()

    @contextmanager
    def _locked(self, uri: str) -> Iterator[None]:
        """Hold the uri's lock. It lives exactly as long as someone uses it."""
        with self._guard:
            holder = self._locks.get(uri)
            if holder is None:
                holder = self._locks[uri] = _UriLock()
            holder.users += 1
        try:
            with holder.lock:
                yield
        finally:
            with self._guard:
                holder.users -= 1
                if holder.users == 0:
                    del self._locks[uri]

    def get(self, uri: str, version: int, text: str) -> ast.Document:
        """Document for `text` at `version`, parsing only on a version miss.

        An entry is only replaced by a newer version; parsing an older version
        returns a fresh Document without touching the cache.
        """
        with self._locked(uri):
            entry = self._entries.get(uri)
            if entry is not None and entry.version == version:
                self.hits += 1
                logger.debug("cache hit %s@%d", uri, version)
                return entry.document

            self.misses += 1
            logger.debug("parsing %s@%d", uri, version)
            document = parse(text, self.options)
            if entry is None or version > entry.version:
                self._entries[uri] = CacheEntry(version=version, document=document)
            return document

    def peek(self, uri: str) -> ast.Document | None:
        entry = self._entries.get(uri)
        return entry.document if entry else None

    def version_of(self, uri: str) -> int | None:
        entry = self._entries.get(uri)
        return entry.version if entry else None

    def invalidate(self, uri: str) -> None:
        with self._locked(uri):
            self._entries.pop(uri, None)

    def clear(self) -> None:
        """Drop every entry. Parses in flight keep their locks."""
        with self._guard:
            self._entries.clear()

    def __contains__(self, uri: str) -> bool:
        return uri in self._entries

    def __len__(self) -> int:
        return len(self._entries)
