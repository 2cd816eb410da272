import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .models import TermRecord


def load_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _vocabulary_id_from_stem(path: Path) -> Optional[int]:
    try:
        return int(path.stem)
    except ValueError:
        return None


def parse_vocabulary(data: Any, path: Path, default_id: Optional[int] = None) -> Tuple[Dict[str, Any], List[TermRecord]]:
    """
    Accepts either {"vocabulary": {...}, "terms": [...]} or a bare list of term rows.
    Returns the vocabulary header (id, name) and the term records in file order.
    The vocabulary id comes from the header, then the rows, then `default_id`,
    then a numeric file name.
    """
    if isinstance(data, dict) and isinstance(data.get("terms"), list):
        header = dict(data.get("vocabulary") or {})
        rows = data["terms"]
    elif isinstance(data, list):
        header = {}
        rows = data
    else:
        raise ValueError(f"{path}: vocabulary file must be a list or a dict with a 'terms' list.")

    vid = header.get("id")
    if vid is None:
        vid = next((r.get("vocabulary_id") for r in rows if isinstance(r, dict) and r.get("vocabulary_id") is not None), None)
    if vid is None:
        vid = default_id
    if vid is None:
        vid = _vocabulary_id_from_stem(path)
    if vid is None:
        raise ValueError(f"{path}: cannot tell which vocabulary these terms belong to.")

    header["id"] = int(vid)
    header.setdefault("name", path.stem)
    terms = [TermRecord.from_row(r, vocabulary_id=header["id"]) for r in rows if r]
    return header, terms


def load_vocabulary(path: str, default_id: Optional[int] = None) -> Tuple[Dict[str, Any], List[TermRecord]]:
    p = Path(path)
    return parse_vocabulary(load_json(str(p)), p, default_id)
