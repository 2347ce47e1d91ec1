"""
Test data builders.

A small bowling history shared by the scope, offline and orchestrator tests:

    Tuesday League (session 1)   g1 150 @ Jan 6 19:00Z, g2 180 @ Jan 6 20:00Z
    Session 2 (unnamed)          g3 200 @ Feb 3 23:30Z, g4 120 @ Feb 4 01:00Z
    Empty (no games)             -
    sessionless                  g5 210 "Birthday Game" @ Feb 10 18:00Z
                                 g6 no score, never played (created Feb 11)
"""

from typing import Iterable, Optional, Sequence

from services.types import BowlingSession, Frame, Game, Shot, parse_timestamp

TEST_USER_ID = "aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa"
OTHER_USER_ID = "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb"


def make_frame(number: int, pins: Sequence[Optional[int]] = (), strike: bool = False, spare: bool = False) -> Frame:
    shots = tuple(Shot(shot_number=i, pins=p) for i, p in enumerate(pins, start=1))
    return Frame(frame_number=number, is_strike=strike, is_spare=spare, shots=shots)


def make_game(
    game_id: str,
    score: Optional[int],
    played_at: Optional[str],
    session_id: Optional[str] = None,
    name: Optional[str] = None,
    frames: Iterable[Frame] = (),
    created_at: Optional[str] = None,
    user_id: str = TEST_USER_ID,
) -> Game:
    return Game(
        id=game_id,
        player_name="Test Bowler",
        total_score=score,
        played_at=parse_timestamp(played_at),
        created_at=parse_timestamp(created_at or played_at),
        session_id=session_id,
        game_name=name,
        user_id=user_id,
        frames=tuple(frames),
    )


def make_session(session_id: str, name: Optional[str], created_at: str, user_id: str = TEST_USER_ID) -> BowlingSession:
    return BowlingSession(
        id=session_id,
        name=name,
        created_at=parse_timestamp(created_at),
        user_id=user_id,
    )


def sample_sessions():
    return [
        make_session("s2", None, "2026-02-01T00:00:00Z"),
        make_session("s1", "Tuesday League", "2026-01-01T00:00:00Z"),
        make_session("s3", "Empty", "2026-03-01T00:00:00Z"),
    ]


def sample_games():
    return [
        make_game("g3", 200, "2026-02-03T23:30:00Z", session_id="s2", frames=[
            make_frame(9, [10], strike=True),
            make_frame(10, [10, 10, 10], strike=True),
        ]),
        make_game("g1", 150, "2026-01-06T19:00:00Z", session_id="s1", frames=[
            make_frame(1, [7, 3], spare=True),
            make_frame(9, [6, 2]),
        ]),
        make_game("g2", 180, "2026-01-06T20:00:00Z", session_id="s1", frames=[
            make_frame(1, [10], strike=True),
            make_frame(9, [8, 2], spare=True),
        ]),
        make_game("g4", 120, "2026-02-04T01:00:00Z", session_id="s2"),
        make_game("g5", 210, "2026-02-10T18:00:00Z", name="Birthday Game", frames=[
            make_frame(1, [10], strike=True),
        ]),
        make_game("g6", None, None, created_at="2026-02-11T12:00:00Z"),
    ]
