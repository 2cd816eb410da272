# termtree/core/term_index.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Tuple

from .models import TermRecord, VIRTUAL_ROOT


@dataclass(frozen=True)
class TermIndex:
    """
    Lookup tables for one vocabulary, built once per call from an ordered
    snapshot of terms. Nothing in here is mutated after `build`.
    """
    vocabulary_id: int
    children_of: Dict[int, Tuple[int, ...]]     # parent id -> child ids, input order
    parents_of: Dict[int, FrozenSet[int]]       # term id -> parent ids
    term_by_id: Dict[int, TermRecord]

    @classmethod
    def build(cls, vocabulary_id: int, terms: Iterable[TermRecord]) -> "TermIndex":
        children: Dict[int, List[int]] = {}
        parents: Dict[int, List[int]] = {}
        by_id: Dict[int, TermRecord] = {}
        seen = set()

        for term in terms:
            if term.vocabulary_id != vocabulary_id:
                continue
            # dangling parent ids are kept; they just never get visited
            for pid in term.parent_ids or [VIRTUAL_ROOT]:
                if (pid, term.id) in seen:
                    continue
                seen.add((pid, term.id))
                children.setdefault(pid, []).append(term.id)
                parents.setdefault(term.id, []).append(pid)
            by_id[term.id] = term

        return cls(
            vocabulary_id=vocabulary_id,
            children_of={pid: tuple(ids) for pid, ids in children.items()},
            parents_of={tid: frozenset(pids) for tid, pids in parents.items()},
            term_by_id=by_id,
        )

    def children(self, parent_id: int) -> Tuple[int, ...]:
        return self.children_of.get(parent_id, ())

    def has_children(self, term_id: int) -> bool:
        return bool(self.children_of.get(term_id))

    def __contains__(self, term_id: object) -> bool:
        return term_id in self.term_by_id

    def __len__(self) -> int:
        return len(self.term_by_id)
