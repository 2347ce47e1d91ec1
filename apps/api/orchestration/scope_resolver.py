"""
Scope Resolver
==============

Turns a user's full game/session collection plus the extracted filters into:

    1. LabelIndex - stable labels ("Session 2", "Game 3 in Session 2")
       computed once over the UNFILTERED ordering
    2. working set - games that satisfy EVERY active filter

Labelling and filtering are separate passes over the same ordered list, so
"Game 3" names the same game no matter which other filters are active.

Ordering:
    sessions: only sessions that have games, by created_at then id
    games:    by played_at (created_at when missing) then id

Numbering:
    in-session number: position within the game's session group
                       (sessionless games form their own group)
    global number:     position in the full list

"Game N" in a question means the in-session number when a session filter is
active, the global number otherwise.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional, Sequence, Set

from extraction.filters import ExtractedFilters, TimeFilter
from extraction.time_normalizer import describe_time_filter
from services.answer_formatter import format_label_list
from services.types import Game, BowlingSession, to_iso

logger = logging.getLogger(__name__)

SESSIONLESS_LABEL = "Sessionless games"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


# =============================================================================
# LABEL INDEX
# =============================================================================

@dataclass(frozen=True)
class SessionEntry:
    session_id: str
    label: str
    name: Optional[str]
    number: int
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "sessionLabel": self.label,
            "sessionName": self.name,
            "createdAt": to_iso(self.created_at),
        }


@dataclass(frozen=True)
class GameEntry:
    game_id: str
    global_number: int
    session_number: int
    session_id: Optional[str]
    session_label: Optional[str]
    session_name: Optional[str]
    custom_name: Optional[str]
    has_sessions: bool = True

    @property
    def label(self) -> str:
        """Full label: custom name, else "Game N in <session label>"."""
        if self.custom_name:
            return self.custom_name
        if not self.has_sessions:
            return f"Game {self.global_number}"
        group = self.session_label or SESSIONLESS_LABEL
        return f"Game {self.session_number} in {group}"

    @property
    def short_label(self) -> str:
        """Label used once a session filter has narrowed the conversation."""
        if self.custom_name:
            return self.custom_name
        return f"Game {self.session_number}"


def _game_sort_key(game: Game):
    return (game.played_at or game.created_at or _EPOCH, game.id)


def _session_sort_key(session: BowlingSession):
    return (session.created_at or _EPOCH, session.id)


@dataclass
class LabelIndex:
    """Label lookup for one request. Built once, never filtered."""
    games: List[Game]
    sessions: List[SessionEntry]
    entries: Dict[str, GameEntry]

    def session(self, session_id: Optional[str]) -> Optional[SessionEntry]:
        if not session_id:
            return None
        for entry in self.sessions:
            if entry.session_id == session_id:
                return entry
        return None

    def entry(self, game: Game) -> GameEntry:
        return self.entries[game.id]

    def label(self, game: Game, session_filter_active: bool = False) -> str:
        entry = self.entries.get(game.id)
        if entry is None:
            return game.custom_name or "Game"
        return entry.short_label if session_filter_active else entry.label

    def game_index(self, session_filter_active: bool = False) -> List[Dict[str, Any]]:
        """Full (unfiltered) game list handed to the reasoning engine."""
        rows = []
        for game in self.games:
            entry = self.entries[game.id]
            rows.append({
                "id": game.id,
                "gameName": self.label(game, session_filter_active),
                "totalScore": game.total_score,
                "playedAt": to_iso(game.played_at),
                "createdAt": to_iso(game.created_at),
                "sessionId": entry.session_id,
                "sessionName": entry.session_name,
                "sessionLabel": entry.session_label,
            })
        return rows

    def session_index(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.sessions]


def build_label_index(games: Sequence[Game], sessions: Sequence[BowlingSession]) -> LabelIndex:
    """
    Compute every label over the unfiltered collection.

    Sessions without any loaded game are not numbered; "Session K" counts
    only sessions that actually hold games.
    """
    ordered_games = sorted(games, key=_game_sort_key)
    session_ids_with_games = {game.session_id for game in ordered_games if game.session_id}

    session_entries: List[SessionEntry] = []
    ordered_sessions = sorted(
        (s for s in sessions if s.id in session_ids_with_games),
        key=_session_sort_key,
    )
    for position, session in enumerate(ordered_sessions, start=1):
        name = session.trimmed_name
        session_entries.append(SessionEntry(
            session_id=session.id,
            label=name or f"Session {position}",
            name=name,
            number=position,
            created_at=session.created_at,
        ))
    by_session_id = {entry.session_id: entry for entry in session_entries}
    has_sessions = bool(session_ids_with_games)

    group_counters: Dict[str, int] = {}
    entries: Dict[str, GameEntry] = {}
    for global_number, game in enumerate(ordered_games, start=1):
        group_key = game.session_id or ""
        group_counters[group_key] = group_counters.get(group_key, 0) + 1
        session_entry = by_session_id.get(game.session_id) if game.session_id else None
        if game.session_id and session_entry is None:
            # Game points at a session row we could not load
            session_label = "Session"
        else:
            session_label = session_entry.label if session_entry else None
        entries[game.id] = GameEntry(
            game_id=game.id,
            global_number=global_number,
            session_number=group_counters[group_key],
            session_id=game.session_id,
            session_label=session_label,
            session_name=session_entry.name if session_entry else None,
            custom_name=game.custom_name,
            has_sessions=has_sessions,
        )

    return LabelIndex(games=ordered_games, sessions=session_entries, entries=entries)


# =============================================================================
# FILTERS (each usable on its own)
# =============================================================================

def select_session_ids(index: LabelIndex, filters: ExtractedFilters) -> List[str]:
    """Session ids referenced by number ("session 2") or by name."""
    selected: List[str] = []
    numbers = set(filters.session_numbers)
    names = {name.lower() for name in filters.session_names}
    for entry in index.sessions:
        by_number = entry.number in numbers
        by_name = bool(entry.name) and entry.name.lower() in names
        if by_number or by_name:
            selected.append(entry.session_id)
    return selected


def apply_session_filter(
    games: Sequence[Game],
    session_ids: Sequence[str],
    sessionless: bool = False,
) -> List[Game]:
    """Keep games in the chosen sessions (plus sessionless games when asked)."""
    if not session_ids and not sessionless:
        return list(games)
    wanted: Set[str] = set(session_ids)
    return [
        game for game in games
        if (game.session_id in wanted if game.session_id else sessionless)
    ]


def apply_game_number_filter(
    games: Sequence[Game],
    index: LabelIndex,
    numbers: Sequence[int],
    session_filter_active: bool = False,
) -> List[Game]:
    """Keep games whose number is requested (in-session or global, see module doc)."""
    if not numbers:
        return list(games)
    wanted = set(numbers)
    kept = []
    for game in games:
        entry = index.entries.get(game.id)
        if entry is None:
            continue
        number = entry.session_number if session_filter_active else entry.global_number
        if number in wanted:
            kept.append(game)
    return kept


def apply_frame_filter(games: Sequence[Game], frame_numbers: Sequence[int]) -> List[Game]:
    """Keep games that contain every requested frame."""
    if not frame_numbers:
        return list(games)
    wanted = set(frame_numbers)
    return [game for game in games if wanted.issubset(game.frame_numbers())]


def apply_time_filter(games: Sequence[Game], time_filter: Optional[TimeFilter]) -> List[Game]:
    """
    Keep games whose played_at satisfies the (normalized) time filter.

    A game without played_at never passes an active time filter. Minute
    bounds are strict on both sides.
    """
    if time_filter is None or time_filter.is_empty:
        return list(games)

    kept = []
    for game in games:
        played_at = game.played_at
        if played_at is None:
            continue

        if time_filter.utc_start is not None and time_filter.utc_end is not None:
            if not time_filter.utc_start <= played_at < time_filter.utc_end:
                continue
        elif time_filter.date is not None:
            if played_at.date() != time_filter.date:
                continue
        elif time_filter.range_start is not None and time_filter.range_end is not None:
            # Offset unknown: range compared on the UTC calendar
            if not time_filter.range_start <= played_at.date() <= time_filter.range_end:
                continue

        minutes = played_at.hour * 60 + played_at.minute
        if time_filter.before_minutes is not None and minutes >= time_filter.before_minutes:
            continue
        if time_filter.after_minutes is not None and minutes <= time_filter.after_minutes:
            continue
        kept.append(game)
    return kept


# =============================================================================
# LABEL HELPERS
# =============================================================================

def format_game_range(numbers: Sequence[int]) -> Optional[str]:
    """[1, 2, 3, 5] -> "games 1 to 3 and 5"."""
    if not numbers:
        return None
    ordered = sorted(set(numbers))
    runs = []
    start = end = ordered[0]
    for value in ordered[1:]:
        if value == end + 1:
            end = value
        else:
            runs.append((start, end))
            start = end = value
    runs.append((start, end))

    parts = [str(a) if a == b else f"{a} to {b}" for a, b in runs]
    if len(parts) <= 2:
        joined = " and ".join(parts)
    else:
        joined = f"{', '.join(parts[:-1])}, and {parts[-1]}"
    return f"games {joined}"


def build_selection_label(
    game_numbers: Sequence[int],
    local_time_filter: Optional[TimeFilter],
    session_labels: Sequence[str] = (),
) -> Optional[str]:
    """e.g. "games 1 to 3 played after 7pm on March 3, 2026"."""
    game_label = format_game_range(game_numbers)
    time_label = describe_time_filter(local_time_filter) if local_time_filter else None

    if game_label and time_label:
        return f"{game_label} {time_label}"
    if game_label:
        return game_label
    if time_label:
        return f"games {time_label}"
    session_list = format_label_list(session_labels)
    if session_list:
        return f"sessions {session_list}"
    return None


# =============================================================================
# SCOPE
# =============================================================================

@dataclass
class Scope:
    """Resolved selection for one request."""
    games: List[Game]
    label_index: LabelIndex
    filters: ExtractedFilters
    local_time_filter: TimeFilter
    time_filter: TimeFilter
    scope_text: str
    selected_session_ids: List[str] = field(default_factory=list)
    selected_session_labels: List[str] = field(default_factory=list)
    session_filtered_games: List[Game] = field(default_factory=list)
    selection_label: Optional[str] = None
    game_id: Optional[str] = None
    timezone_offset_minutes: Optional[int] = None
    session_filter_active: bool = False

    @property
    def frame_numbers(self) -> List[int]:
        return self.filters.frame_numbers

    @property
    def has_time_filter(self) -> bool:
        return not self.time_filter.is_empty

    def label_for(self, game: Game) -> str:
        return self.label_index.label(game, self.session_filter_active)

    def game_index(self) -> List[Dict[str, Any]]:
        return self.label_index.game_index(self.session_filter_active)

    def session_index(self) -> List[Dict[str, Any]]:
        return self.label_index.session_index()

    def session_game_index(self) -> List[Dict[str, Any]]:
        """
        Per-session game lists over the session-filtered games, in session
        order, with the sessionless group last.
        """
        def _game_rows(group: List[Game]) -> List[Dict[str, Any]]:
            return [
                {
                    "gameLabel": f"Game {self.label_index.entry(game).session_number}",
                    "totalScore": game.total_score,
                    "playedAt": to_iso(game.played_at),
                }
                for game in sorted(group, key=_game_sort_key)
            ]

        source = self.session_filtered_games
        result = []
        for session in self.label_index.sessions:
            in_session = [game for game in source if game.session_id == session.session_id]
            if not in_session:
                continue
            result.append({
                "sessionId": session.session_id,
                "sessionLabel": session.label,
                "sessionName": session.name,
                "games": _game_rows(in_session),
            })

        sessionless = [game for game in source if not game.session_id]
        if sessionless:
            result.append({
                "sessionId": None,
                "sessionLabel": SESSIONLESS_LABEL,
                "sessionName": None,
                "games": _game_rows(sessionless),
            })
        return result

    def selection(self) -> Dict[str, Any]:
        """Non-authoritative selection hint for prompts."""
        return {
            "selectedGameNumbers": list(self.filters.game_numbers),
            "selectedGameNames": [self.label_for(game) for game in self.games],
            "selectedFrameNumbers": list(self.filters.frame_numbers),
            "selectedSessionIds": list(self.selected_session_ids),
            "selectedSessionNumbers": list(self.filters.session_numbers),
            "selectedSessionNames": list(self.filters.session_names),
            "selectedSessionLabels": list(self.selected_session_labels),
            "sessionless": self.filters.sessionless,
            "timeFilter": self.time_filter.to_dict(),
            "timezoneOffsetMinutes": self.timezone_offset_minutes,
        }


def resolve_scope(
    games: Sequence[Game],
    sessions: Sequence[BowlingSession],
    filters: ExtractedFilters,
    time_filter: TimeFilter,
    game_id: Optional[str] = None,
    timezone_offset_minutes: Optional[int] = None,
) -> Scope:
    """
    Build the label index and the working set.

    With game_id the pipeline is scoped to that single game: session and
    game-number filters are skipped, frame and time filters still apply.
    """
    index = build_label_index(games, sessions)
    ordered = index.games

    if game_id:
        candidates = [game for game in ordered if game.id == game_id]
        session_filtered = candidates
        session_filter_active = False
        selected_ids: List[str] = []
        selected_labels: List[str] = []
        scope_text = "current game only"
    else:
        selected_ids = select_session_ids(index, filters)
        selected_labels = [index.session(sid).label for sid in selected_ids]
        if filters.sessionless:
            selected_labels.append(SESSIONLESS_LABEL)

        # A session reference that resolves to nothing leaves the scope unfiltered
        session_filter_active = bool(selected_ids) or filters.sessionless
        session_filtered = apply_session_filter(ordered, selected_ids, filters.sessionless)

        candidates = apply_game_number_filter(
            session_filtered, index, filters.game_numbers, session_filter_active
        )

        label_list = format_label_list(selected_labels)
        scope_text = f"games in {label_list}" if session_filter_active and label_list \
            else "all games for the signed-in user"

    working = apply_frame_filter(candidates, filters.frame_numbers)
    working = apply_time_filter(working, time_filter)

    local_time_filter = filters.time_filter
    scope = Scope(
        games=working,
        label_index=index,
        filters=filters,
        local_time_filter=local_time_filter,
        time_filter=time_filter,
        scope_text=scope_text,
        selected_session_ids=selected_ids,
        selected_session_labels=selected_labels,
        session_filtered_games=session_filtered,
        selection_label=build_selection_label(filters.game_numbers, local_time_filter, selected_labels),
        game_id=game_id,
        timezone_offset_minutes=timezone_offset_minutes,
        session_filter_active=session_filter_active,
    )
    logger.info(
        f"[Scope] {len(working)}/{len(ordered)} games selected "
        f"(sessions={len(selected_ids)}, games={filters.game_numbers}, "
        f"frames={filters.frame_numbers}, time={'yes' if scope.has_time_filter else 'no'})"
    )
    return scope
