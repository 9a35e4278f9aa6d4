"""Breadth-first discovery of leaf folders in a flat key space."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from catexplorer.errors import ValidationError
from catexplorer.storage import ObjectStore, separator_depth

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveredPrefixes:
    """Sorted leaf prefixes found by a bounded-depth walk."""

    prefixes: tuple[str, ...]

    @property
    def count(self) -> int:
        return len(self.prefixes)


def discover_leaf_prefixes(
    store: ObjectStore,
    start_prefix: str,
    target_depth: int,
    *,
    max_workers: int = 16,
) -> DiscoveredPrefixes:
    """Walk common prefixes level by level until ``target_depth`` separators.

    Each level lists the children of every frontier prefix in parallel (at
    most ``max_workers`` calls in flight) and waits for all of them before the
    next level starts. If a level yields no children the walk stops and the
    last non-empty frontier is returned.
    """
    if target_depth < 0:
        raise ValidationError(f"target_depth must be >= 0, got {target_depth}")
    if separator_depth(start_prefix) > target_depth:
        raise ValidationError(
            f"start prefix '{start_prefix}' is deeper than target_depth {target_depth}"
        )

    frontier = [start_prefix]
    depth = separator_depth(start_prefix)
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        while depth < target_depth:
            children: dict[str, None] = {}
            for listed in pool.map(store.list_immediate_children, frontier):
                for child in listed:
                    children.setdefault(child, None)
            if not children:
                logger.debug(
                    "No children below depth %d under '%s'; stopping early",
                    depth,
                    start_prefix,
                )
                break
            frontier = list(children)
            depth += 1
            logger.debug("Depth %d: %d prefixes", depth, len(frontier))

    return DiscoveredPrefixes(prefixes=tuple(sorted(frontier)))
