import sys
from typing import Any, Dict, List, NamedTuple, Optional

from pydantic import BaseModel, Field, field_validator

VIRTUAL_ROOT = 0                     # parent id meaning "no parent"; never emitted
UNBOUNDED_DEPTH = sys.maxsize        # explicit "no depth limit"

# keys that carry the raw parent link on an input row
PARENT_KEYS = ("parent_ids", "parents", "parent", "parent_id")


def _as_parent_ids(value: Any) -> List[int]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        raw = list(value)
    else:
        raw = [value]
    ids: List[int] = []
    for v in raw:
        if v is None:
            continue
        if isinstance(v, dict):
            v = v.get("id")
        pid = int(v)
        if pid == VIRTUAL_ROOT or pid in ids:
            continue
        ids.append(pid)
    return ids


class TermRecord(BaseModel):
    id: int
    vocabulary_id: int
    parent_ids: List[int] = Field(default_factory=list)   # empty = child of the virtual root
    attributes: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("parent_ids", mode="before")
    @classmethod
    def normalize_parents(cls, value: Any) -> List[int]:
        return _as_parent_ids(value)

    @classmethod
    def from_row(cls, row: Dict[str, Any], vocabulary_id: Optional[int] = None) -> "TermRecord":
        """
        Build a record from a flat row such as one loaded from JSON.
        id / vocabulary_id / parent keys are lifted out; everything else is kept
        untouched in `attributes`.
        """
        data = dict(row)
        parents: List[int] = []
        for key in PARENT_KEYS:
            if key in data:
                parents.extend(_as_parent_ids(data.pop(key)))
        vid = data.pop("vocabulary_id", None)
        if vid is None:
            vid = vocabulary_id
        return cls(
            id=data.pop("id"),
            vocabulary_id=vid,
            parent_ids=parents,
            attributes=data,
        )


class TreeNode(BaseModel):
    id: int
    vocabulary_id: int
    depth: int = Field(ge=0)
    attributes: Dict[str, Any] = Field(default_factory=dict)

    def as_row(self) -> Dict[str, Any]:
        row = dict(self.attributes)
        row.update({"id": self.id, "vocabulary_id": self.vocabulary_id, "depth": self.depth})
        return row


class Visit(NamedTuple):
    term_id: int
    depth: int
    via_parent_id: int


# ---------------------------- API payloads ---------------------------- #

class TreeQuery(BaseModel):
    parent: int = VIRTUAL_ROOT
    max_depth: Optional[int] = None
    published: bool = False


class TermSearchQuery(BaseModel):
    search: Optional[str] = None
    limit: int = Field(default=25, ge=1, le=500)
    published: bool = False


class StatusUpdate(BaseModel):
    ids: List[int] = Field(min_length=1)
    online: bool


class VocabularySummary(BaseModel):
    id: int
    name: str
    term_count: int
