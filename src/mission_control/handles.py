# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Generational entity handles.

Entities are referenced by an EntityHandle: a slot index plus the
generation that slot had when the entity was created.  Destroying an
entity bumps the slot's generation, so every handle to it stops resolving
at once.  "Is this entity still valid" is a lookup, not a flag on a
shared object.

    arena = EntityArena()
    h = arena.insert("tower")
    arena.remove(h)
    arena.is_valid(h)        # False
    h2 = arena.insert("x")   # may reuse the slot, never the generation
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, order=True)
class EntityHandle:
    """Stable reference to one entity: slot index + generation."""

    index: int
    generation: int = 0

    @property
    def key(self) -> str:
        """String form used in reports, tags, and URLs."""
        return f"{self.index}:{self.generation}"

    @classmethod
    def parse(cls, key: str) -> EntityHandle:
        """Parse ``"index:generation"`` (or a bare index, generation 0)."""
        text = str(key).strip()
        if ":" in text:
            index, generation = text.split(":", 1)
            return cls(int(index), int(generation))
        return cls(int(text), 0)

    def __str__(self) -> str:
        return f"#{self.index}.{self.generation}"


class EntityArena(Generic[T]):
    """Slot storage with generation counters."""

    def __init__(self) -> None:
        self._values: list[T | None] = []
        self._generations: list[int] = []
        self._live: list[bool] = []
        self._free: list[int] = []
        self._count = 0

    def insert(self, value: T) -> EntityHandle:
        if self._free:
            index = self._free.pop()
            self._values[index] = value
            self._live[index] = True
        else:
            index = len(self._values)
            self._values.append(value)
            self._generations.append(0)
            self._live.append(True)
        self._count += 1
        return EntityHandle(index, self._generations[index])

    def is_valid(self, handle: EntityHandle | None) -> bool:
        if handle is None:
            return False
        index = handle.index
        if index < 0 or index >= len(self._values):
            return False
        return self._live[index] and self._generations[index] == handle.generation

    def get(self, handle: EntityHandle | None) -> T | None:
        if not self.is_valid(handle):
            return None
        return self._values[handle.index]

    def remove(self, handle: EntityHandle | None) -> bool:
        """Free the slot.  Returns False if *handle* was already stale."""
        if not self.is_valid(handle):
            return False
        index = handle.index
        self._values[index] = None
        self._live[index] = False
        self._generations[index] += 1
        self._free.append(index)
        self._count -= 1
        return True

    def items(self) -> Iterator[tuple[EntityHandle, T]]:
        for index, live in enumerate(self._live):
            if live:
                yield EntityHandle(index, self._generations[index]), self._values[index]

    def __len__(self) -> int:
        return self._count

    def __contains__(self, handle: object) -> bool:
        return isinstance(handle, EntityHandle) and self.is_valid(handle)
