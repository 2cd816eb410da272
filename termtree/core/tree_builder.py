# termtree/core/tree_builder.py
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from .materializer import NodeMaterializer
from .models import TermRecord, TreeNode, VIRTUAL_ROOT
from .term_index import TermIndex
from .walker import HierarchyWalker

logger = logging.getLogger(__name__)

TermInput = Union[TermRecord, Dict[str, Any]]


def _as_records(vocabulary_id: int, terms: Iterable[TermInput]) -> List[TermRecord]:
    records: List[TermRecord] = []
    for t in terms or []:
        if isinstance(t, TermRecord):
            records.append(t)
        else:
            records.append(TermRecord.from_row(t, vocabulary_id=vocabulary_id))
    return records


def build_tree(
    vocabulary_id: int,
    terms: Iterable[TermInput],
    root_id: int = VIRTUAL_ROOT,
    max_depth: Optional[int] = None,
    *,
    guard_cycles: bool = True,
) -> List[TreeNode]:
    """
    Flatten the hierarchy below `root_id` into a pre-order list of TreeNodes.

    `terms` must already be filtered (vocabulary, visibility) and sorted by
    display position; their order decides sibling order. Each term shows up
    once per parent path that reaches it within `max_depth` (None = no limit).
    Nothing found is an empty list, never an error; a cyclic hierarchy raises
    CycleDetected when `guard_cycles` is on.
    """
    index = TermIndex.build(vocabulary_id, _as_records(vocabulary_id, terms))
    if not len(index):
        return []

    walker = HierarchyWalker(index, root_id, max_depth, guard_cycles=guard_cycles)
    make_node = NodeMaterializer()

    tree: List[TreeNode] = []
    for visit in walker.walk():
        record = index.term_by_id.get(visit.term_id)
        if record is None:
            continue
        tree.append(make_node(record, visit.depth))

    logger.debug(
        "Built tree for vocabulary %s from root %s: %d nodes out of %d terms",
        vocabulary_id, root_id, len(tree), len(index),
    )
    return tree
