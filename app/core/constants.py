from enum import Enum


class RoleEnum(str, Enum):
    ADMIN = "admin"
    USER = "user"

class QuestionTypeEnum(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"

class ExamAttemptStatusEnum(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

class AttemptSessionStateEnum(str, Enum):
    STARTED = "started"
    RESUMED = "resumed"
    EXPIRED = "expired"

class ExamAvailabilityEnum(str, Enum):
    AVAILABLE = "available"
    UPCOMING = "upcoming"
    CLOSED = "closed"

class UnavailableReasonEnum(str, Enum):
    NOT_YET_OPEN = "not_yet_open"
    CLOSED = "closed"

class PersistenceStageEnum(str, Enum):
    ATTEMPT_CREATE = "attempt_create"
    ATTEMPT_UPDATE = "attempt_update"
    ANSWERS_INSERT = "answers_insert"
    COMMIT = "commit"

# True/false items are keyed "C" (certo) / "E" (errado)
TRUE_FALSE_CHOICES = ("C", "E")

EXCELLENT_PERCENTAGE = 70
GOOD_PERCENTAGE = 50

RANKING_EXPORT_COLUMNS = [
    "Posição",
    "Nome",
    "Email",
    "Pontuação",
    "Percentual",
    "Acertos",
    "Erros",
    "Em branco",
    "Penalidade",
    "Tempo",
    "Concluído em",
]
