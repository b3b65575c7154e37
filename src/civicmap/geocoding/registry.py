"""Run scoped mapping from address text to coordinates."""
from __future__ import annotations

from typing import Dict, Iterator, Mapping

from ..core.types import Coordinates


class CoordinateRegistry:
    """Address string to :class:`Coordinates` map where the first writer wins.

    Keys are used verbatim; no case or whitespace normalisation happens.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Coordinates] = {}

    def set_if_absent(self, address: str, coordinates: Coordinates) -> bool:
        """Store ``coordinates`` unless ``address`` is already known.

        Returns ``True`` when the entry was added.
        """

        if address in self._entries:
            return False
        self._entries[address] = coordinates
        return True

    def merge(self, entries: Mapping[str, Coordinates]) -> int:
        """Add all unknown ``entries`` and return how many were added."""

        return sum(1 for address, coordinates in entries.items() if self.set_if_absent(address, coordinates))

    def __getitem__(self, address: str) -> Coordinates:
        return self._entries[address]

    def __contains__(self, address: object) -> bool:
        return address in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)


__all__ = ["CoordinateRegistry"]
