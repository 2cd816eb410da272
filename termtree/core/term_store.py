# termtree/core/term_store.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple
import copy
import logging
import re
import threading
import unicodedata

from rapidfuzz import fuzz, process

from .loaders import load_vocabulary
from .models import TermRecord, TreeNode, VIRTUAL_ROOT
from .tree_builder import build_tree

logger = logging.getLogger(__name__)

PUBLISHED = 1

# ---------------------------- utils ---------------------------- #

def _norm(s: str) -> str:
    s = unicodedata.normalize("NFKC", s or "").casefold()
    s = re.sub(r"[\W_]+", " ", s)
    return re.sub(r"\s+", " ", s).strip()

def _position(term: TermRecord) -> float:
    pos = term.attributes.get("pos")
    try:
        return float(pos)
    except (TypeError, ValueError):
        return 0.0

def _is_published(term: TermRecord) -> bool:
    try:
        return int(term.attributes.get("status", 0)) == PUBLISHED
    except (TypeError, ValueError):
        return False

# ---------------------------- vocabulary model ---------------------------- #

@dataclass
class Vocabulary:
    id: int
    name: str
    terms: List[TermRecord] = field(default_factory=list)    # sorted by position

# ---------------------------- cache ---------------------------- #

TreeKey = Tuple[int, int, Optional[int], bool]   # (vocabulary_id, root_id, max_depth, published_only)

class TreeCache:
    """
    Memoizes whole build_tree results. Entries are copied in and out so a caller
    editing a returned node never touches the cached one.
    """
    def __init__(self):
        self._entries: Dict[TreeKey, List[TreeNode]] = {}
        self._lock = threading.Lock()

    def get(self, key: TreeKey) -> Optional[List[TreeNode]]:
        with self._lock:
            nodes = self._entries.get(key)
            if nodes is None:
                return None
            return [n.model_copy(deep=True) for n in nodes]

    def put(self, key: TreeKey, nodes: List[TreeNode]) -> None:
        with self._lock:
            self._entries[key] = [n.model_copy(deep=True) for n in nodes]

    def invalidate(self, vocabulary_id: int) -> int:
        with self._lock:
            stale = [k for k in self._entries if k[0] == vocabulary_id]
            for k in stale:
                del self._entries[k]
        if stale:
            logger.debug("Invalidated %d cached trees for vocabulary %s", len(stale), vocabulary_id)
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

# ---------------------------- store ---------------------------- #

class TermStore:
    """
    Loads/holds vocabularies from JSON files and feeds their terms to build_tree.
    Visibility (published-only) and position ordering are applied here, before the
    core sees the terms. Status changes stay in memory.
    """
    def __init__(
        self,
        vocabulary_dir: Optional[Path | str] = None,
        *,
        cache_enabled: bool = True,
        guard_cycles: bool = True,
        default_max_depth: Optional[int] = None,
    ):
        self.dir = Path(vocabulary_dir) if vocabulary_dir else None
        self.vocabularies: Dict[int, Vocabulary] = {}
        self.cache = TreeCache() if cache_enabled else None
        self.guard_cycles = guard_cycles
        self.default_max_depth = default_max_depth
        self._lock = threading.Lock()
        # bumped on every change to a vocabulary; a build only caches if it
        # still matches the generation it started from
        self._generations: Dict[int, int] = {}

    # ---- Loading ---- #
    def load_all_from_dir(self) -> None:
        if not self.dir:
            raise ValueError("TermStore: no vocabulary_dir was provided.")
        if not self.dir.is_dir():
            raise FileNotFoundError(f"Vocabulary directory not found: {self.dir}")
        with self._lock:
            for vid in list(self.vocabularies):
                self._bump(vid)
            self.vocabularies.clear()
        for p in sorted(self.dir.glob("*.json")):
            self.load_vocabulary_file(p)
        logger.info("Loaded %d vocabularies from %s", len(self.vocabularies), self.dir)

    def load_vocabulary_file(self, path: Path | str, default_id: Optional[int] = None) -> Vocabulary:
        file = Path(path)
        if not file.exists():
            raise FileNotFoundError(f"Vocabulary file not found: {file}")
        header, terms = load_vocabulary(str(file), default_id)
        return self.add_vocabulary(header["id"], header["name"], terms)

    def add_vocabulary(
        self,
        vocabulary_id: int,
        name: str,
        terms: Iterable[TermRecord],
    ) -> Vocabulary:
        ordered = sorted(
            (t for t in terms if t.vocabulary_id == vocabulary_id),
            key=_position,
        )
        vocab = Vocabulary(id=vocabulary_id, name=name, terms=ordered)
        with self._lock:
            self.vocabularies[vocabulary_id] = vocab
            self._bump(vocabulary_id)
        logger.debug("Vocabulary %s (%s): %d terms", vocabulary_id, name, len(ordered))
        return vocab

    # ---- Accessors ---- #
    def list_vocabularies(self) -> List[Dict[str, Any]]:
        return [
            {"id": v.id, "name": v.name, "term_count": len(v.terms)}
            for v in self.vocabularies.values()
        ]

    def has_vocabulary(self, vocabulary_id: int) -> bool:
        return vocabulary_id in self.vocabularies

    def get_terms(self, vocabulary_id: int, published_only: bool = False) -> List[TermRecord]:
        vocab = self.vocabularies.get(vocabulary_id)
        if not vocab:
            return []
        if published_only:
            return [t for t in vocab.terms if _is_published(t)]
        return list(vocab.terms)

    def find(self, vocabulary_id: int, term_id: int) -> Optional[TermRecord]:
        return next((t for t in self.get_terms(vocabulary_id) if t.id == term_id), None)

    # ---- Tree ---- #
    def get_tree(
        self,
        vocabulary_id: int,
        parent: int = VIRTUAL_ROOT,
        max_depth: Optional[int] = None,
        published_only: bool = False,
    ) -> List[TreeNode]:
        if max_depth is None:
            max_depth = self.default_max_depth
        key: TreeKey = (vocabulary_id, parent, max_depth, published_only)

        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Tree cache hit for %s", key)
                return cached

        with self._lock:
            generation = self._generations.get(vocabulary_id, 0)
            terms = self.get_terms(vocabulary_id, published_only=published_only)

        tree = build_tree(
            vocabulary_id,
            terms,
            root_id=parent,
            max_depth=max_depth,
            guard_cycles=self.guard_cycles,
        )
        if self.cache is not None:
            with self._lock:
                if self._generations.get(vocabulary_id, 0) == generation:
                    self.cache.put(key, tree)
                else:
                    logger.debug("Vocabulary %s changed during build; not caching %s", vocabulary_id, key)
        return tree

    # ---- Search ---- #
    def search(
        self,
        vocabulary_id: int,
        query_text: str,
        limit: int = 25,
        min_score: int = 60,
        published_only: bool = False,
    ) -> List[Dict[str, Any]]:
        terms = self.get_terms(vocabulary_id, published_only=published_only)
        if not terms or not (query_text or "").strip():
            return []

        hits: Dict[int, Dict[str, Any]] = {}
        # an id typed into the search box wins outright
        q = query_text.strip()
        if q.isdigit():
            exact = next((t for t in terms if t.id == int(q)), None)
            if exact is not None:
                hits[exact.id] = {**term_row(exact), "score": 100}

        needle = _norm(q)
        if not needle:
            return list(hits.values())

        corpus = [_norm(str(t.attributes.get("name", ""))) for t in terms]
        # partial_ratio handles short names typed as prefixes well
        result = process.extract(needle, corpus, scorer=fuzz.partial_ratio, limit=min(limit, len(corpus)))
        for _, score, idx in result:
            if score < min_score:
                continue
            term = terms[idx]
            if term.id not in hits:
                hits[term.id] = {**term_row(term), "score": int(score)}

        return list(hits.values())[:limit]

    # ---- Status ---- #
    def mark_online(self, vocabulary_id: int, term_ids: Iterable[int]) -> List[TermRecord]:
        return self._set_status(vocabulary_id, term_ids, PUBLISHED)

    def mark_offline(self, vocabulary_id: int, term_ids: Iterable[int]) -> List[TermRecord]:
        return self._set_status(vocabulary_id, term_ids, 0)

    def _bump(self, vocabulary_id: int) -> None:
        # caller holds self._lock
        self._generations[vocabulary_id] = self._generations.get(vocabulary_id, 0) + 1
        if self.cache is not None:
            self.cache.invalidate(vocabulary_id)

    def _set_status(self, vocabulary_id: int, term_ids: Iterable[int], status: int) -> List[TermRecord]:
        vocab = self.vocabularies.get(vocabulary_id)
        if not vocab:
            raise KeyError(f"Unknown vocabulary: {vocabulary_id}")
        wanted = set(term_ids)
        missing = wanted - {t.id for t in vocab.terms}
        if missing:
            raise KeyError(f"Unknown term id(s) in vocabulary {vocabulary_id}: {sorted(missing)}")

        changed: List[TermRecord] = []
        with self._lock:
            terms = []
            for t in vocab.terms:
                if t.id in wanted:
                    attrs = copy.deepcopy(t.attributes)
                    attrs["status"] = status
                    t = t.model_copy(update={"attributes": attrs})
                    changed.append(t)
                terms.append(t)
            vocab.terms = terms
            self._bump(vocabulary_id)

        logger.info("Vocabulary %s: status=%s for %d terms", vocabulary_id, status, len(changed))
        return changed


def term_row(term: TermRecord) -> Dict[str, Any]:
    row = dict(term.attributes)
    row.update({"id": term.id, "vocabulary_id": term.vocabulary_id, "parent_ids": list(term.parent_ids)})
    return row
