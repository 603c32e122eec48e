from livequiz.models import Question, Quiz, ScoringType

# Points by arrival position when a speed quiz has no table of its own
DEFAULT_SPEED_TABLE = (20, 15, 10, 5)


def speed_table(quiz: Quiz) -> list[int]:
    """Effective points-by-position table; the last entry is the catch-all."""
    config = quiz.speed_scoring_config or []
    table = [int(entry["points"]) for entry in config if entry.get("points") is not None]
    return table or list(DEFAULT_SPEED_TABLE)


def score(quiz: Quiz, question: Question, is_correct: bool, arrival_position: int) -> int:
    """Points for one answer.

    ``arrival_position`` is the 1-based rank of this answer among the correct
    answers to the question. Negative marking has no penalty rule defined yet,
    so it scores like standard.
    """
    if not is_correct:
        return 0

    if quiz.scoring_type == ScoringType.SPEED:
        table = speed_table(quiz)
        position = max(1, arrival_position)
        points = table[min(position, len(table)) - 1]
    else:
        points = question.points if question.points is not None else 10

    if question.is_bonus:
        points *= 2
    return points
