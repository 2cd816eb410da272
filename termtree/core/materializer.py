import copy
from typing import Any, Dict

from .models import PARENT_KEYS, TermRecord, TreeNode


def _strip_parent_link(attributes: Dict[str, Any]) -> Dict[str, Any]:
    return {k: copy.deepcopy(v) for k, v in attributes.items() if k not in PARENT_KEYS}


def materialize(record: TermRecord, depth: int) -> TreeNode:
    """Build a fresh TreeNode for one visit; shares nothing with `record` or other nodes."""
    return TreeNode(
        id=record.id,
        vocabulary_id=record.vocabulary_id,
        depth=depth,
        attributes=_strip_parent_link(record.attributes),
    )


class NodeMaterializer:
    def __call__(self, record: TermRecord, depth: int) -> TreeNode:
        return materialize(record, depth)
