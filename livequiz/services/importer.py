"""Question import: validation of the manual/spreadsheet question shape and
reading/writing the spreadsheet template."""

import io
import logging
from typing import Any, Optional

from openpyxl import Workbook, load_workbook

from livequiz.core.errors import ValidationError
from livequiz.schemas import QuestionCreate
from livequiz.services.options import OPTION_COUNT, parse_option

logger = logging.getLogger(__name__)

TEMPLATE_HEADERS = [
    "Question",
    "Option A",
    "Option B",
    "Option C",
    "Option D",
    "Correct Answer",
    "Points",
    "Is Bonus",
    "Time Limit (seconds)",
]

TEMPLATE_ROWS = [
    ["What is the capital of France?", "London", "Berlin", "Paris", "Madrid", "Option C", 10, "No", 45],
    ["Which planet is known as the Red Planet?", "Venus", "Mars", "Jupiter", "Saturn", "Option B", 15, "No", 30],
    ["BONUS: What is the chemical symbol for gold?", "Go", "Gd", "Au", "Ag", "Option C", 20, "Yes", 60],
]

# Template header -> camelCase alias also accepted
COLUMN_ALIASES = {
    "Question": "question",
    "Option A": "optionA",
    "Option B": "optionB",
    "Option C": "optionC",
    "Option D": "optionD",
    "Correct Answer": "correctAnswer",
    "Points": "points",
    "Is Bonus": "isBonus",
    "Time Limit (seconds)": "timeLimit",
}

TRUTHY = {"yes", "y", "true", "1"}


def validate_question(question: QuestionCreate, number: Optional[int] = None) -> int:
    """Check the import shape and return the canonical correct option index."""
    where = f"Question {number}: " if number is not None else ""
    if not question.text or not question.text.strip():
        raise ValidationError(f"{where}text is required")
    if len(question.options) != OPTION_COUNT:
        raise ValidationError(f"{where}exactly {OPTION_COUNT} options are required")
    if any(not str(opt).strip() for opt in question.options):
        raise ValidationError(f"{where}options must not be blank")
    if question.time_limit is not None and question.time_limit <= 0:
        raise ValidationError(f"{where}time limit must be positive")
    if question.points < 0:
        raise ValidationError(f"{where}points must not be negative")
    try:
        correct = parse_option(question.correct_answer, question.options)
    except ValidationError:
        raise ValidationError(f"{where}correct answer {question.correct_answer!r} does not match an option")
    if correct is None:
        raise ValidationError(f"{where}correct answer is required")
    return correct


def _cell(row: dict[str, Any], header: str) -> Any:
    value = row.get(header)
    if value is None or (isinstance(value, str) and not value.strip()):
        value = row.get(COLUMN_ALIASES[header])
    if isinstance(value, str):
        value = value.strip()
    return value


def _as_int(value: Any, default: Optional[int]) -> Optional[int]:
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Expected a number, got {value!r}")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY


def parse_workbook(data: bytes, default_time: Optional[int] = None) -> list[QuestionCreate]:
    """Read questions from the first sheet of an .xlsx upload."""
    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except Exception as exc:
        raise ValidationError(f"Could not read spreadsheet: {exc}") from exc

    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header_row = next(rows, None)
        if not header_row:
            raise ValidationError("Spreadsheet is empty")
        headers = [str(h).strip() if h is not None else "" for h in header_row]

        questions: list[QuestionCreate] = []
        for values in rows:
            if values is None or all(v is None or str(v).strip() == "" for v in values):
                continue
            row = dict(zip(headers, values))
            number = len(questions) + 1
            question = QuestionCreate(
                text=str(_cell(row, "Question") or ""),
                options=[str(_cell(row, f"Option {letter}") or "") for letter in "ABCD"],
                correct_answer=str(_cell(row, "Correct Answer") or ""),
                is_bonus=_as_bool(_cell(row, "Is Bonus")),
                time_limit=_as_int(_cell(row, "Time Limit (seconds)"), default_time),
                points=_as_int(_cell(row, "Points"), 10),
            )
            validate_question(question, number)
            questions.append(question)
    finally:
        workbook.close()

    if not questions:
        raise ValidationError("Spreadsheet contains no questions")
    logger.info("Parsed %s questions from spreadsheet", len(questions))
    return questions


def build_template() -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Quiz Questions"
    sheet.append(TEMPLATE_HEADERS)
    for row in TEMPLATE_ROWS:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
