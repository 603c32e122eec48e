from collections import defaultdict

from livequiz.core.errors import NotFound
from livequiz.schemas.session import LeaderboardEntry
from livequiz.services.store import QuizStore


class Leaderboard:
    """Ranked standings, recomputed from sessions and answers on every read."""

    def __init__(self, store: QuizStore):
        self.store = store

    async def compute(self, quiz_id: str) -> list[LeaderboardEntry]:
        if not await self.store.get_quiz(quiz_id):
            raise NotFound("Quiz not found")
        sessions = await self.store.list_participants(quiz_id)
        by_session = defaultdict(list)
        for answer in await self.store.list_quiz_answers(quiz_id):
            by_session[answer.session_id].append(answer)

        rows = []
        for join_order, session in enumerate(sessions):
            user = await self.store.get_user(session.user_id)
            answers = by_session.get(session.id, [])
            rows.append(
                (
                    join_order,
                    LeaderboardEntry(
                        user_id=session.user_id,
                        email=user.email if user else None,
                        total_score=session.total_score,
                        correct_answers=sum(1 for a in answers if a.is_correct),
                        total_answers=len(answers),
                        total_time=round(sum(a.time_to_answer for a in answers), 3),
                        rank=0,
                    ),
                )
            )

        # Score desc, then less cumulative answer time, then whoever joined first
        rows.sort(key=lambda row: (-row[1].total_score, row[1].total_time, row[0]))
        leaderboard = []
        for rank, (_, entry) in enumerate(rows, start=1):
            entry.rank = rank
            leaderboard.append(entry)
        return leaderboard
