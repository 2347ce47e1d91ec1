"""
Execute Module
==============
SQL tier: generation prompts, read-only validation, result labeling.

Components:
- sql_validator - SELECT-only gate with row limit
- sql_prompts - schema description and prompt templates
- result_labeler - attach game/session labels to raw rows
- sql_tier - generate -> validate -> execute -> answer
"""

from .sql_validator import (
    DEFAULT_ROW_LIMIT,
    FORBIDDEN_KEYWORDS,
    SqlValidation,
    validate_sql,
    require_valid_sql,
)
from .sql_prompts import (
    USE_CONTEXT_SENTINEL,
    build_sql_prompt,
    build_sql_answer_prompt,
)
from .result_labeler import (
    annotate_rows,
    build_label_mapping,
    parse_rows,
)
from .sql_tier import (
    SqlExecutor,
    TierResult,
    run_sql_tier,
)

__all__ = [
    'DEFAULT_ROW_LIMIT',
    'FORBIDDEN_KEYWORDS',
    'SqlValidation',
    'validate_sql',
    'require_valid_sql',
    'USE_CONTEXT_SENTINEL',
    'build_sql_prompt',
    'build_sql_answer_prompt',
    'annotate_rows',
    'build_label_mapping',
    'parse_rows',
    'SqlExecutor',
    'TierResult',
    'run_sql_tier',
]
