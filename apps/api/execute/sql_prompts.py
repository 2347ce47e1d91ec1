"""
SQL Tier Prompts
================

Two prompts per SQL attempt:

1. SQL_GENERATION_PROMPT -> engine returns {"sql": ..., "explanation": ...}
   (or sql = USE_CONTEXT_SENTINEL to hand the question to the context tier)
2. SQL_ANSWER_PROMPT     -> engine turns SQL + labeled rows into prose

Both carry the user's timezone offset; every stored timestamp is UTC.
"""

import json
from typing import Any, Optional

USE_CONTEXT_SENTINEL = "__USE_CONTEXT__"

SCHEMA_DESCRIPTION = """bowling_sessions(id uuid, user_id uuid, name text, description text, started_at timestamptz, created_at timestamptz)
games(id uuid, session_id uuid, game_name text, player_name text, total_score int, played_at timestamptz, created_at timestamptz, user_id uuid)
frames(id uuid, game_id uuid, frame_number int, is_strike boolean, is_spare boolean)
shots(id uuid, frame_id uuid, shot_number int, pins int)"""

BOWLING_PREAMBLE = (
    "You are a bowling stats assistant that is familiar with bowling terminology.\n"
    "You can recognize and correctly interpret bowling slang (e.g., 'wombat' = a gutter spare, "
    "'hambone' = four strikes in a row, 'brooklyn' = strike that crosses to the opposite pocket, "
    "'foundation frame' = 9th frame, etc.) when it appears. Do not force slang in {target} "
    "but feel free to use."
)

ANSWER_STYLE_RULES = """When listing multiple items, format them as a bulleted or numbered list (one item per line).
Only use markdown for bold (**). Bold the actual answer values (including multiple items if listed). Do not use any other markdown.
Answer with a direct response. Do not include "Answer:".
Include just enough context in the answer but keep it concise, for example "What is my average score across games x to y"
should be answered similarly to "Your average score across games x to y is n."
If a response is null, instead of using the word "null" use language such as "You have no games x to y\""""


SQL_GENERATION_PROMPT = """{preamble}
Your task is to write a single SQL SELECT query to answer a bowling stats question.
Return JSON only with this schema: {{"sql": string|null, "explanation": string}}.
- Only SELECT statements.
- Use table and column names exactly as defined.
- If you cannot answer with SQL, set sql to "{sentinel}" and explain.
- The game index is a full list of games (not filtered). Use it for labels, but follow the question text for filtering.
- Labels like "Game 3" come from the Game Index ordering; do not filter by games.game_name for "Game N" labels unless the user explicitly mentions a custom name.
- Session labels and IDs are provided in the Session Index. If the user references Session N or a session name, map it to session_id and filter by games.session_id.
- Empty sessions do not exist for this task. Never include or count any session that is not in the Session Index.
- When listing sessions, use the Session Index labels (sessionLabel) and never output raw UUIDs unless the user explicitly asks for IDs.
- If a session is specified, "Game N" refers to ordering within that session. If no session is specified, "Game N" refers to the overall list.
- If the question lists games, include games.id, games.session_id, games.played_at, and games.total_score in the SELECT so labels can be mapped.
- If the question lists sessions, include bowling_sessions.id in the SELECT so labels can be mapped.
- The user's timezone offset (minutes from UTC) is {offset}.
- Times mentioned in the user's question are in the user's local time unless explicitly stated otherwise; convert to UTC for querying.
- Times in Schema and Game Index are in UTC.
- local time + {offset} = UTC.

Schema:
{schema}

Session Index:
{session_index}

Game Index:
{game_index}

Question: {question}
JSON Output:"""


SQL_ANSWER_PROMPT = """{preamble} Use the SQL and results JSON to answer.
All timestamps in the results are UTC. The user's timezone offset (minutes from UTC) is {offset}.
If you mention times, convert them to the user's local time.
UTC - {offset} minutes = local time.
If results include gameLabel (or sessionLabel), use those labels instead of raw IDs or null game_name values.
Never mention sessions that are not present in the Label Mapping.
{style}

SQL:
{sql}

Label Mapping:
{label_mapping}

Results JSON:
{results}

Question: {question}
Answer:"""


def _json(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def _offset_text(offset_minutes: Optional[int]) -> str:
    return "unknown" if offset_minutes is None else str(offset_minutes)


def build_sql_prompt(
    question: str,
    game_index: Any,
    session_index: Any,
    timezone_offset_minutes: Optional[int] = None,
    schema: str = SCHEMA_DESCRIPTION,
) -> str:
    return SQL_GENERATION_PROMPT.format(
        preamble=BOWLING_PREAMBLE.format(target="SQL"),
        sentinel=USE_CONTEXT_SENTINEL,
        offset=_offset_text(timezone_offset_minutes),
        schema=schema,
        session_index=_json(session_index or []),
        game_index=_json(game_index or []),
        question=question,
    )


def build_sql_answer_prompt(
    question: str,
    sql: str,
    results: Any,
    timezone_offset_minutes: Optional[int] = None,
    label_mapping: Any = None,
) -> str:
    return SQL_ANSWER_PROMPT.format(
        preamble=BOWLING_PREAMBLE.format(target="answers"),
        offset=_offset_text(timezone_offset_minutes),
        style=ANSWER_STYLE_RULES,
        sql=sql,
        label_mapping=_json(label_mapping or {}),
        results=_json(results),
        question=question,
    )
