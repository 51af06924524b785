"""
Response Ingestion - load questionnaire answers from CSV, TSV or Excel.

Uses scored keyword matching to locate the question-id and answer columns so
exports from other tools can be uploaded without renaming headers.
Raises ValueError when a file cannot be parsed or the columns cannot be found.
"""

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

from backend.readiness.context import AssessmentResponse, RawAnswer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Column detection keyword maps (scored; higher = more confident match)
# ---------------------------------------------------------------------------

QUESTION_ID_KEYWORDS = {
    "question_id": 5, "questionid": 5, "qid": 5, "question": 4, "id": 3,
    "item": 2, "ref": 2, "number": 1, "code": 2,
}

ANSWER_KEYWORDS = {
    "answer": 5, "response": 5, "value": 4, "result": 3, "selection": 4,
    "choice": 4, "status": 2, "reply": 4,
}

TIMESTAMP_KEYWORDS = {
    "timestamp": 5, "answered_at": 5, "date": 4, "time": 3, "updated": 3,
    "submitted": 4, "created": 3,
}

_TRUE = {"true", "yes", "y"}
_FALSE = {"false", "no", "n"}
_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")


def _score_column(col_name: str, keyword_map: Dict[str, int]) -> int:
    """Score a column name against a keyword map. Higher = better match."""
    col_lower = str(col_name).lower().strip().replace(" ", "_").replace("-", "_")
    total = 0
    for kw, weight in keyword_map.items():
        if kw == col_lower:
            return weight * 3
        if kw in col_lower:
            total += weight
    return total


def _best_column(df: pd.DataFrame, keyword_map: Dict[str, int],
                 exclude: Optional[List[str]] = None) -> Optional[str]:
    best_col = None
    best_score = 0
    exclude = exclude or []
    for col in df.columns:
        if col in exclude:
            continue
        col_score = _score_column(col, keyword_map)
        if col_score > best_score:
            best_score = col_score
            best_col = col
    return best_col if best_score >= 3 else None


def coerce_value(val: Any) -> Optional[RawAnswer]:
    """Booleans for yes/no words, numbers for numerics, text otherwise. Blank -> None."""
    if val is None or (isinstance(val, float) and pd.isna(val)):
        return None
    if hasattr(val, "item"):  # numpy scalar
        val = val.item()
    if isinstance(val, (bool, int, float)):
        return val
    text = str(val).strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    if _NUMBER.match(text):
        number = float(text)
        return int(number) if number.is_integer() else number
    return text


# ---------------------------------------------------------------------------
# File reading
# ---------------------------------------------------------------------------

def read_dataframe(file_data: bytes, filename: str) -> pd.DataFrame:
    """Read a file into a DataFrame of strings. Supports CSV, TSV and Excel."""
    fname_lower = filename.lower()
    try:
        if fname_lower.endswith(".tsv"):
            return pd.read_csv(io.BytesIO(file_data), sep="\t", dtype=str,
                               encoding_errors="replace")
        if fname_lower.endswith(".xlsx"):
            return pd.read_excel(io.BytesIO(file_data), engine="openpyxl", dtype=str)
        text = file_data.decode("utf-8-sig", errors="replace")
        head = text[:500]
        sep = "\t" if head.count("\t") > head.count(",") else ","
        return pd.read_csv(io.StringIO(text), sep=sep, dtype=str)
    except Exception as e:
        logger.warning("Could not read %s: %s", filename, e)
        raise ValueError(f"Could not parse tabular data from '{filename}': {e}") from e


@dataclass
class ExtractionResult:
    responses: List[AssessmentResponse] = field(default_factory=list)
    columns_detected: Dict[str, Optional[str]] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    rows_read: int = 0


def extract_responses(df: pd.DataFrame, source: str = "") -> ExtractionResult:
    """
    Turn a DataFrame into responses. Later rows for the same question id
    replace earlier ones; rows with a blank id or blank answer are skipped.
    """
    if df is None or df.empty:
        raise ValueError(f"No rows found in '{source}'")

    id_col = _best_column(df, QUESTION_ID_KEYWORDS)
    answer_col = _best_column(df, ANSWER_KEYWORDS, exclude=[id_col] if id_col else None)
    if id_col is None or answer_col is None:
        raise ValueError(
            f"Could not detect question id / answer columns in '{source}' "
            f"(columns: {list(df.columns)})"
        )
    ts_col = _best_column(df, TIMESTAMP_KEYWORDS, exclude=[id_col, answer_col])

    result = ExtractionResult(
        columns_detected={"question_id": id_col, "answer": answer_col, "timestamp": ts_col},
        rows_read=len(df),
    )
    latest: Dict[str, AssessmentResponse] = {}
    skipped = 0
    for _, row in df.iterrows():
        qid = row[id_col]
        answer = coerce_value(row[answer_col])
        if pd.isna(qid) or not str(qid).strip() or answer is None:
            skipped += 1
            continue
        timestamp = row[ts_col] if ts_col else None
        latest[str(qid).strip()] = AssessmentResponse(
            question_id=str(qid).strip(),
            answer=answer,
            timestamp=None if timestamp is None or pd.isna(timestamp) else str(timestamp),
        )

    result.responses = list(latest.values())
    if skipped:
        result.warnings.append(f"{skipped} row(s) skipped with a blank id or answer")
    logger.info("Extracted %d responses from '%s' (id=%s, answer=%s)",
                len(result.responses), source, id_col, answer_col)
    return result


def load_responses(file_data: bytes, filename: str) -> ExtractionResult:
    return extract_responses(read_dataframe(file_data, filename), source=filename)


def parse_csv_text(text: str) -> List[AssessmentResponse]:
    """Convenience for inline CSV, e.g. `question_id,answer` pasted in a form."""
    return load_responses(text.encode("utf-8"), "inline.csv").responses
