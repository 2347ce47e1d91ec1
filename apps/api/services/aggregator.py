"""
Game Aggregator
===============

Summary statistics over any collection of games. Pure function of its input.

Rounding:
    averages  -> 2 decimals
    rates     -> 3 decimals

Empty denominators are NOT treated uniformly:
    average_score          -> None when no game has a score
    strike_rate/spare_rate -> 0 when there are no frames
Callers (offline answers, prompts) rely on that difference: None means
"no data", 0 means "no occurrences".
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Sequence

from services.types import Game


def _rate(count: int, total: int) -> float:
    return round(count / total, 3) if total > 0 else 0


@dataclass(frozen=True)
class FrameAggregate:
    frame: int
    frames: int
    average_pins: Optional[float]
    strike_rate: float
    spare_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frame": self.frame,
            "frames": self.frames,
            "averagePins": self.average_pins,
            "strikeRate": self.strike_rate,
            "spareRate": self.spare_rate,
        }


@dataclass(frozen=True)
class GameSummary:
    total_games: int
    scored_games: int
    average_score: Optional[float]
    total_score: int
    total_frames: int
    strike_rate: float
    spare_rate: float
    per_frame: List[FrameAggregate] = field(default_factory=list)

    def frame(self, frame_number: int) -> Optional[FrameAggregate]:
        for entry in self.per_frame:
            if entry.frame == frame_number:
                return entry
        return None

    def frames_for(self, frame_numbers: Sequence[int]) -> List[FrameAggregate]:
        """Per-frame entries restricted to the given frames (all when empty)."""
        if not frame_numbers:
            return list(self.per_frame)
        wanted = set(frame_numbers)
        return [entry for entry in self.per_frame if entry.frame in wanted]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalGames": self.total_games,
            "scoredGames": self.scored_games,
            "averageScore": self.average_score,
            "totalScore": self.total_score,
            "totalFrames": self.total_frames,
            "strikeRate": self.strike_rate,
            "spareRate": self.spare_rate,
            "perFrame": [entry.to_dict() for entry in self.per_frame],
        }


def summarize_frames(games: Sequence[Game]) -> List[FrameAggregate]:
    """
    Per frame-number breakdown.

    Only frames with at least one known shot count toward `frames`; the pin
    average and both rates share that denominator.
    """
    buckets: Dict[int, Dict[str, int]] = {}
    for game in games:
        for frame in game.frames:
            bucket = buckets.setdefault(
                frame.frame_number, {"frames": 0, "pins": 0, "strikes": 0, "spares": 0}
            )
            pins = frame.known_pins
            if pins:
                bucket["frames"] += 1
                bucket["pins"] += sum(pins)
            if frame.is_strike:
                bucket["strikes"] += 1
            if frame.is_spare:
                bucket["spares"] += 1

    result = []
    for frame_number in sorted(buckets):
        bucket = buckets[frame_number]
        counted = bucket["frames"]
        result.append(FrameAggregate(
            frame=frame_number,
            frames=counted,
            average_pins=round(bucket["pins"] / counted, 2) if counted > 0 else None,
            strike_rate=_rate(bucket["strikes"], counted),
            spare_rate=_rate(bucket["spares"], counted),
        ))
    return result


def summarize_games(games: Sequence[Game]) -> GameSummary:
    """Headline numbers plus the per-frame breakdown."""
    scores = [game.total_score for game in games if game.total_score is not None]
    total_score = sum(scores)
    frames = [frame for game in games for frame in game.frames]
    total_frames = len(frames)

    return GameSummary(
        total_games=len(games),
        scored_games=len(scores),
        average_score=round(total_score / len(scores), 2) if scores else None,
        total_score=total_score,
        total_frames=total_frames,
        strike_rate=_rate(sum(1 for f in frames if f.is_strike), total_frames),
        spare_rate=_rate(sum(1 for f in frames if f.is_spare), total_frames),
        per_frame=summarize_frames(games),
    )


def best_game(games: Sequence[Game]) -> Optional[Game]:
    """Highest scored game; earliest wins ties."""
    best = None
    for game in games:
        if game.total_score is None:
            continue
        if best is None or game.total_score > best.total_score:
            best = game
    return best


def worst_game(games: Sequence[Game]) -> Optional[Game]:
    """Lowest scored game; earliest wins ties."""
    worst = None
    for game in games:
        if game.total_score is None:
            continue
        if worst is None or game.total_score < worst.total_score:
            worst = game
    return worst
