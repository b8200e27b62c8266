# blog_migrator/crawler/frontier.py
"""
Traversal state of one link-discovery run.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set


@dataclass
class Frontier:
    """Visited pages, the LIFO stack of pages still to fetch, and found post URLs.

    A URL is fetched at most once: :meth:`pop` only hands out URLs that are
    not in ``visited`` yet.
    """

    visited: Set[str] = field(default_factory=set)
    to_visit: List[str] = field(default_factory=list)
    discovered: Set[str] = field(default_factory=set)
    _queued: Set[str] = field(default_factory=set, repr=False)

    @classmethod
    def seeded(cls, urls: Iterable[str]) -> Frontier:
        frontier = cls()
        for url in urls:
            frontier.push(url)
        return frontier

    def push(self, url: str) -> bool:
        """Queue *url* unless it was already visited or queued."""
        if self.is_known(url):
            return False
        self.to_visit.append(url)
        self._queued.add(url)
        return True

    def pop(self) -> Optional[str]:
        """Take the most recently queued unvisited URL and mark it visited."""
        while self.to_visit:
            url = self.to_visit.pop()
            self._queued.discard(url)
            if url in self.visited:
                continue
            self.visited.add(url)
            return url
        return None

    def is_known(self, url: str) -> bool:
        return url in self.visited or url in self._queued

    def emit(self, url: str) -> None:
        self.discovered.add(url)

    @property
    def pages_visited(self) -> int:
        return len(self.visited)

    def __len__(self) -> int:
        return len(self.to_visit)
