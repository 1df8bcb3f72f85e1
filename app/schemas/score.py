from pydantic import BaseModel, computed_field

from app.core.constants import EXCELLENT_PERCENTAGE, GOOD_PERCENTAGE

class ScoreResult(BaseModel):
    """Score breakdown of one attempt."""
    total: int
    correct: int
    incorrect: int
    blank: int
    final_score: int
    percentage: int
    penalty_applied: int
    has_penalty: bool

    @computed_field
    @property
    def summary(self) -> str:
        if self.has_penalty:
            return f"{self.final_score} pontos de {self.total} ({self.correct} acertos - {self.penalty_applied} de penalidade)"
        return f"{self.correct} de {self.total} questões corretas"

    @computed_field
    @property
    def feedback(self) -> str:
        if self.percentage >= EXCELLENT_PERCENTAGE:
            return "Parabéns! Ótimo desempenho!"
        if self.percentage >= GOOD_PERCENTAGE:
            return "Bom trabalho! Continue praticando."
        return "Continue estudando. Você consegue melhorar!"
