"""
SQL Result Labeling
===================

Generated SQL returns raw ids and timestamps. Before the rows are handed back
to the engine for the prose answer, each row is matched to the label index
so the answer can say "Game 3 in Session 2" instead of a UUID.

Matching: the row's played_at (normalized to ISO UTC) selects candidate
index entries; when several games share that instant the row's total_score
picks one. Existing label fields on the row are never overwritten.
"""

import json
import logging
from typing import Dict, Any, List, Optional, Sequence

from services.types import parse_timestamp, to_iso

logger = logging.getLogger(__name__)


def to_iso_timestamp(value: Any) -> Optional[str]:
    if not value or not isinstance(value, str):
        return None
    return to_iso(parse_timestamp(value))


def parse_rows(data: Any) -> List[Any]:
    """RPC payloads arrive as a list, or as a JSON string of one."""
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except ValueError:
            logger.warning("[SQL] execute_sql returned non-JSON text")
            return []
    return data if isinstance(data, list) else []


def annotate_rows(rows: Sequence[Any], game_index: Sequence[Dict[str, Any]]) -> List[Any]:
    """Add gameLabel / sessionLabel / sessionName / sessionId where missing."""
    by_played_at: Dict[str, List[Dict[str, Any]]] = {}
    for entry in game_index or []:
        iso = to_iso_timestamp(entry.get("playedAt"))
        if iso:
            by_played_at.setdefault(iso, []).append(entry)

    annotated = []
    for row in rows:
        if not isinstance(row, dict):
            annotated.append(row)
            continue

        labeled = dict(row)
        iso = to_iso_timestamp(labeled.get("played_at") or labeled.get("playedAt"))
        candidates = by_played_at.get(iso, []) if iso else []
        if candidates:
            score = labeled.get("total_score", labeled.get("totalScore"))
            if isinstance(score, (int, float)) and not isinstance(score, bool):
                matched = next((c for c in candidates if c.get("totalScore") == score), None)
            else:
                matched = candidates[0]

            if matched:
                for row_key, index_key in (
                    ("gameLabel", "gameName"),
                    ("sessionLabel", "sessionLabel"),
                    ("sessionName", "sessionName"),
                    ("sessionId", "sessionId"),
                ):
                    if not labeled.get(row_key) and matched.get(index_key):
                        labeled[row_key] = matched[index_key]
        annotated.append(labeled)
    return annotated


def build_label_mapping(
    session_index: Sequence[Dict[str, Any]],
    game_index: Sequence[Dict[str, Any]],
) -> Dict[str, Dict[str, str]]:
    """{sessionLabels: {id: label}, gameLabels: {id: label}} for the answer prompt."""
    session_labels = {
        entry["sessionId"]: entry["sessionLabel"]
        for entry in session_index or []
        if entry.get("sessionId")
    }
    game_labels = {
        entry.get("id") or "": entry.get("gameName") or ""
        for entry in game_index or []
    }
    return {"sessionLabels": session_labels, "gameLabels": game_labels}
