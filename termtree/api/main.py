import logging
import os
from pathlib import Path
from typing import Optional

from flask import Flask, current_app, jsonify, request
from pydantic import ValidationError

from ..config import (
    DATA_DIR,
    DEFAULT_MAX_DEPTH,
    GUARD_CYCLES,
    LOG_LEVEL,
    PORT,
    SEARCH_LIMIT,
    SEARCH_MIN_SCORE,
    TREE_CACHE_ENABLED,
    VOCABULARY_DIR,
)
from ..core.models import StatusUpdate, TermSearchQuery, TreeQuery, VocabularySummary
from ..core.term_store import TermStore, term_row
from ..core.walker import CycleDetected

logger = logging.getLogger(__name__)


def _store() -> TermStore:
    return current_app.config["TERM_STORE"]


def _bad_request(message: str, e: Exception):
    return jsonify({"error": message, "details": str(e)}), 400


def _unknown_vocabulary(vid: int):
    return jsonify({
        "error": "Unknown vocabulary",
        "provided": vid,
        "available": [v["id"] for v in _store().list_vocabularies()],
    }), 404


def _default_store() -> TermStore:
    store = TermStore(
        VOCABULARY_DIR,
        cache_enabled=TREE_CACHE_ENABLED,
        guard_cycles=GUARD_CYCLES,
        default_max_depth=DEFAULT_MAX_DEPTH,
    )
    if Path(VOCABULARY_DIR).is_dir():
        store.load_all_from_dir()
    else:
        logger.warning("Vocabulary directory %s does not exist; serving no vocabularies", VOCABULARY_DIR)
    return store


def create_app(store: Optional[TermStore] = None) -> Flask:
    app = Flask(__name__)
    app.config["TERM_STORE"] = store if store is not None else _default_store()

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "data_dir": os.path.abspath(DATA_DIR),
            "vocabularies": len(_store().list_vocabularies()),
        }

    @app.get("/vocabularies")
    def vocabularies():
        return jsonify([VocabularySummary(**v).model_dump() for v in _store().list_vocabularies()])

    @app.get("/vocabularies/<int:vid>/tree")
    def tree(vid: int):
        try:
            query = TreeQuery(**request.args.to_dict())
        except ValidationError as e:
            return _bad_request("Invalid tree query", e)

        if not _store().has_vocabulary(vid):
            return _unknown_vocabulary(vid)

        try:
            nodes = _store().get_tree(
                vid,
                parent=query.parent,
                max_depth=query.max_depth,
                published_only=query.published,
            )
        except CycleDetected as e:
            logger.warning("Vocabulary %s: %s", vid, e)
            return jsonify({"error": "Cyclic term hierarchy", "details": str(e), "path": list(e.path)}), 422

        return jsonify([n.as_row() for n in nodes]), 200

    @app.get("/vocabularies/<int:vid>/terms")
    def terms(vid: int):
        args = request.args.to_dict()
        args.setdefault("limit", SEARCH_LIMIT)
        try:
            query = TermSearchQuery(**args)
        except ValidationError as e:
            return _bad_request("Invalid term query", e)

        if not _store().has_vocabulary(vid):
            return _unknown_vocabulary(vid)

        if query.search:
            hits = _store().search(
                vid,
                query.search,
                limit=query.limit,
                min_score=SEARCH_MIN_SCORE,
                published_only=query.published,
            )
            return jsonify(hits), 200

        rows = [term_row(t) for t in _store().get_terms(vid, published_only=query.published)]
        return jsonify(rows[: query.limit]), 200

    @app.get("/vocabularies/<int:vid>/terms/<int:tid>")
    def term(vid: int, tid: int):
        found = _store().find(vid, tid)
        if found is None:
            return jsonify({"error": "Term not found", "vocabulary_id": vid, "id": tid}), 404
        return jsonify(term_row(found)), 200

    @app.post("/vocabularies/<int:vid>/terms/status")
    def term_status(vid: int):
        try:
            payload = request.get_json(force=True)
        except Exception as e:
            return _bad_request("Invalid JSON body", e)

        if not isinstance(payload, dict):
            return jsonify({"error": "Request body must be a single JSON object"}), 400

        try:
            update = StatusUpdate(**payload)
        except ValidationError as e:
            return _bad_request("Invalid status update", e)

        if not _store().has_vocabulary(vid):
            return _unknown_vocabulary(vid)

        try:
            if update.online:
                changed = _store().mark_online(vid, update.ids)
            else:
                changed = _store().mark_offline(vid, update.ids)
        except KeyError as e:
            return jsonify({"error": "Unknown term", "details": e.args[0]}), 404

        return jsonify({"updated": [t.id for t in changed], "online": update.online}), 200

    return app


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    create_app().run(
        host="0.0.0.0",
        port=PORT,
        debug=False,
        use_reloader=False
    )
