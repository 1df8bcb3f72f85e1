from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

class RankingEntry(BaseModel):
    position: int
    user_id: int
    user_name: str
    final_score: int
    percentage: int
    time_spent_seconds: int
    completed_at: datetime
    is_current_user: bool = False

class AdminRankingEntry(RankingEntry):
    attempt_id: int
    user_email: str
    correct_answers: int
    incorrect_answers: int
    blank_answers: int
    penalty_applied: int

class RankingStats(BaseModel):
    total_attempts: int = 0
    average_score: Optional[float] = None
    average_percentage: Optional[float] = None
    average_time_seconds: Optional[float] = None
    best_score: Optional[int] = None
    worst_score: Optional[int] = None

class Ranking(BaseModel):
    exam_id: int
    entries: List[RankingEntry] = []
    stats: RankingStats
    current_user_entry: Optional[RankingEntry] = None

class AdminRanking(BaseModel):
    exam_id: int
    entries: List[AdminRankingEntry] = []
    stats: RankingStats
