"""
Pure selection helpers for batch generation.

Nothing in this module touches the database. The engine builds ordered
pools per level, hands them to ``allocate_levels`` together with the
requested counts, and gets back the chosen developers labelled with the
slot level they fill.

Pool order is the order of preference: for each level, the per-skill
pools (each rotated past its cursor) follow the project's skill order,
and recycled developers sit at the tail.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from directory.models import LEVEL_ORDER


@dataclass(frozen=True)
class PoolEntry:
    developer_id: Any
    skill_id: str
    level: str
    recycled: bool = False


@dataclass(frozen=True)
class Selection:
    entry: PoolEntry
    level: str

    @property
    def developer_id(self):
        return self.entry.developer_id

    @property
    def promoted(self) -> bool:
        return self.entry.level != self.level


def rotate_after_cursor(
    items: Sequence,
    cursor: Optional[Any],
    key: Callable[[Any], Any] = lambda item: item,
) -> list:
    """Return ``items`` (sorted by ``key``) starting just after ``cursor``.

    The cursor does not have to be present in ``items``: rotation starts at
    the first item whose key is greater than the cursor, so a developer
    leaving the pool never resets the rotation. A cursor at or past the
    end wraps to the start.
    """
    if cursor is None or not items:
        return list(items)
    start = next((i for i, item in enumerate(items) if key(item) > cursor), len(items))
    return list(items[start:]) + list(items[:start])


def merge_pools(pools: Iterable[Iterable[PoolEntry]]) -> list[PoolEntry]:
    """Concatenate pools keeping the first occurrence of each developer."""
    seen = set()
    merged = []
    for pool in pools:
        for entry in pool:
            if entry.developer_id in seen:
                continue
            seen.add(entry.developer_id)
            merged.append(entry)
    return merged


def allocate_levels(
    pools: Mapping[str, Sequence[PoolEntry]],
    counts: Mapping[str, int],
) -> list[Selection]:
    """Fill each level's requested count, promoting from lower levels.

    Every level first takes its own quota from the head of its pool. A
    level still short then takes the unused tail of the next lower level,
    then the one below that, labelling the promoted entries with the
    level they fill. Higher levels are served first.
    """
    selected: dict[str, list[Selection]] = {}
    surplus: dict[str, list[PoolEntry]] = {}
    for level in LEVEL_ORDER:
        pool = list(pools.get(level, ()))
        wanted = max(int(counts.get(level, 0)), 0)
        selected[level] = [Selection(entry, level) for entry in pool[:wanted]]
        surplus[level] = pool[wanted:]

    for index, level in enumerate(LEVEL_ORDER):
        shortfall = max(int(counts.get(level, 0)), 0) - len(selected[level])
        for lower in LEVEL_ORDER[index + 1:]:
            if shortfall <= 0:
                break
            pulled = surplus[lower][:shortfall]
            del surplus[lower][:len(pulled)]
            selected[level].extend(Selection(entry, level) for entry in pulled)
            shortfall -= len(pulled)

    return [choice for level in LEVEL_ORDER for choice in selected[level]]


def cursor_positions(
    pools: Mapping[str, Sequence[PoolEntry]],
    selected: Iterable[Selection],
) -> dict[tuple[str, str], Any]:
    """Last consumed developer per (skill, level) pool, in pool order.

    Recycled entries only move a cursor when nothing fresh was consumed
    from that pool.
    """
    chosen = {choice.developer_id for choice in selected}
    positions: dict[tuple[str, str], Any] = {}
    recycled: dict[tuple[str, str], Any] = {}
    for pool in pools.values():
        for entry in pool:
            if entry.developer_id not in chosen:
                continue
            target = recycled if entry.recycled else positions
            target[(entry.skill_id, entry.level)] = entry.developer_id
    for key, developer_id in recycled.items():
        positions.setdefault(key, developer_id)
    return positions


def count_by_level(selected: Iterable[Selection]) -> dict[str, int]:
    counts = {level: 0 for level in LEVEL_ORDER}
    for choice in selected:
        counts[choice.level] += 1
    return counts
