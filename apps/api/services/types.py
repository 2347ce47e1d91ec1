#!/usr/bin/env python3
"""
Bowling Chat - Core Types

Single source of truth for the records that flow through the chat pipeline.
Rows arrive from Supabase as plain dicts (games with nested frames/shots,
sessions); they are parsed once into these dataclasses and never mutated.

Every record belongs to exactly one user. The pipeline receives an
AuthContext and passes its user_id to every data access call.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Tuple

_FRACTION_RE = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")
_SHORT_OFFSET_RE = re.compile(r"(\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?[+-]\d{2})$")


def _normalize_iso(text: str) -> str:
    """Pad or trim fractional seconds to 6 digits and expand "+00" offsets."""
    text = _FRACTION_RE.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text, count=1)
    return _SHORT_OFFSET_RE.sub(r"\1:00", text)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are assumed to be UTC (timestamptz columns come back with an
    offset; test fixtures sometimes omit it). Returns None for anything that
    does not parse.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(_normalize_iso(text))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Render a UTC datetime the way Postgres/JS clients do (millisecond Z form)."""
    if value is None:
        return None
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class AuthContext:
    """
    Authenticated caller.

    access_token is the caller's own bearer token; the SQL tier forwards it
    so row-level security applies to generated queries.
    """
    user_id: str
    access_token: Optional[str] = None

    def __post_init__(self):
        if not self.user_id:
            raise ValueError("AuthContext.user_id is required")


@dataclass(frozen=True)
class Shot:
    shot_number: int
    pins: Optional[int] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Shot":
        pins = _optional_int(row.get("pins"))
        if pins is not None and not 0 <= pins <= 10:
            pins = None
        return cls(shot_number=_optional_int(row.get("shot_number")) or 0, pins=pins)


@dataclass(frozen=True)
class Frame:
    """One frame. Strike/spare flags are derived from shots by the OCR worker."""
    frame_number: int
    is_strike: bool = False
    is_spare: bool = False
    shots: Tuple[Shot, ...] = ()

    @property
    def known_pins(self) -> List[int]:
        return [shot.pins for shot in self.shots if shot.pins is not None]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Frame":
        shots = tuple(
            sorted(
                (Shot.from_row(s) for s in (row.get("shots") or []) if isinstance(s, dict)),
                key=lambda s: s.shot_number,
            )
        )
        return cls(
            frame_number=_optional_int(row.get("frame_number")) or 0,
            is_strike=bool(row.get("is_strike")),
            is_spare=bool(row.get("is_spare")),
            shots=shots,
        )


@dataclass(frozen=True)
class Game:
    id: str
    player_name: str = ""
    total_score: Optional[int] = None
    played_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    session_id: Optional[str] = None
    game_name: Optional[str] = None
    status: Optional[str] = None
    user_id: Optional[str] = None
    frames: Tuple[Frame, ...] = ()

    @property
    def custom_name(self) -> Optional[str]:
        """Trimmed display name, or None when blank."""
        name = (self.game_name or "").strip()
        return name or None

    def frame_numbers(self) -> List[int]:
        return [frame.frame_number for frame in self.frames]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Game":
        frames = tuple(
            sorted(
                (Frame.from_row(f) for f in (row.get("frames") or []) if isinstance(f, dict)),
                key=lambda f: f.frame_number,
            )
        )
        return cls(
            id=str(row.get("id") or ""),
            player_name=row.get("player_name") or "",
            total_score=_optional_int(row.get("total_score")),
            played_at=parse_timestamp(row.get("played_at")),
            created_at=parse_timestamp(row.get("created_at")),
            session_id=row.get("session_id") or None,
            game_name=row.get("game_name"),
            status=row.get("status"),
            user_id=row.get("user_id"),
            frames=frames,
        )


@dataclass(frozen=True)
class BowlingSession:
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    started_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    user_id: Optional[str] = None

    @property
    def trimmed_name(self) -> Optional[str]:
        name = (self.name or "").strip()
        return name or None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "BowlingSession":
        return cls(
            id=str(row.get("id") or ""),
            name=row.get("name"),
            description=row.get("description"),
            started_at=parse_timestamp(row.get("started_at")),
            created_at=parse_timestamp(row.get("created_at")),
            user_id=row.get("user_id"),
        )


@dataclass(frozen=True)
class ChatRequest:
    """Parsed /v1/chat request body."""
    question: str
    timezone_offset_minutes: Optional[int] = None
    game_id: Optional[str] = None


@dataclass
class ChatResponse:
    """Success shape: an online tier answered."""
    answer: str
    scope: str
    meta: Optional[str] = None
    method: str = "sql"

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"answer": self.answer, "scope": self.scope}
        if self.meta:
            body["meta"] = self.meta
        return body


@dataclass
class DegradedResponse:
    """Degraded shape: every online tier failed, the offline tier answered."""
    online_error: str
    offline_answer: str
    offline_note: str
    scope: str
    offline_meta: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "onlineError": self.online_error,
            "offlineAnswer": self.offline_answer,
            "offlineNote": self.offline_note,
            "scope": self.scope,
        }
        if self.offline_meta:
            body["offlineMeta"] = self.offline_meta
        return body
