"""
Iterative depth-first walk over a TermIndex.

Public API:
    HierarchyWalker(index, root_id=VIRTUAL_ROOT, max_depth=UNBOUNDED_DEPTH, guard_cycles=True).walk()
        -> Iterator[Visit]

Behavior:
- Visits come out in pre-order; siblings keep the order of the index's child
  lists, and a term's whole subtree is emitted before its next sibling.
- A term with several parents is visited once per parent edge inside the walk,
  each time with its own depth and via-parent.
- No visit has depth >= `max_depth`. Children of the root are at depth 0.
- No recursion: an explicit list of frames, each a parent id awaiting expansion
  plus its resumable cursor into the child list. Cursors belong to one walk only.
- With `guard_cycles` a term that is already an ancestor on the current path
  raises CycleDetected instead of looping forever.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Sequence, Tuple

from .models import UNBOUNDED_DEPTH, VIRTUAL_ROOT, Visit
from .term_index import TermIndex

logger = logging.getLogger(__name__)


class CycleDetected(ValueError):
    """A term was reached again while one of its own occurrences was still open."""

    def __init__(self, term_id: int, path: Sequence[int]):
        self.term_id = term_id
        self.path = tuple(path)
        chain = " > ".join(str(t) for t in self.path + (term_id,))
        super().__init__(f"Cycle in term hierarchy: {chain}")


class HierarchyWalker:
    def __init__(
        self,
        index: TermIndex,
        root_id: int = VIRTUAL_ROOT,
        max_depth: Optional[int] = UNBOUNDED_DEPTH,
        *,
        guard_cycles: bool = True,
    ):
        self.index = index
        self.root_id = root_id
        self.max_depth = UNBOUNDED_DEPTH if max_depth is None else max_depth
        self.guard_cycles = guard_cycles

    def __iter__(self) -> Iterator[Visit]:
        return self.walk()

    def walk(self) -> Iterator[Visit]:
        # each frame is (parent id, cursor into its child list); a fresh
        # descent starts at 0, a resumed parent at its next unvisited child
        frames: List[Tuple[int, int]] = [(self.root_id, 0)]

        while frames:
            parent, pos = frames.pop()
            # ancestors still open above this level
            depth = len(frames)
            children = self.index.children(parent)
            if depth >= self.max_depth or not children:
                continue

            while pos < len(children):
                child = children[pos]
                pos += 1
                yield Visit(child, depth, parent)

                if not self.index.has_children(child):
                    continue

                if self.guard_cycles and depth + 1 < self.max_depth:
                    path = [f[0] for f in frames] + [parent]
                    if child in path:
                        raise CycleDetected(child, path)

                # come back for the remaining siblings, descend first
                frames.append((parent, pos))
                frames.append((child, 0))
                break

        logger.debug("walk from %s finished (vocabulary %s)", self.root_id, self.index.vocabulary_id)
