"""
Core data models for the MMart Fun arithmetic quiz.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Operation(Enum):
    """Arithmetic operation used by a question, or an operation filter."""
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    BOTH = "both"


class Language(Enum):
    """Interface languages."""
    VI = "vi"
    EN = "en"


class GameMode(Enum):
    """Session play mode."""
    SOLO = "solo"
    DUEL = "duel"


class Winner(Enum):
    """Outcome of a completed duel."""
    PLAYER1 = "player1"
    PLAYER2 = "player2"
    TIE = "tie"


class FeedbackEvent(Enum):
    """Feedback signalled after an answer is evaluated."""
    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass(frozen=True)
class Question:
    """Represents a single arithmetic question."""
    a: int
    b: int
    operation: Operation

    @property
    def dividend(self) -> int:
        return self.a * self.b

    @property
    def answer(self) -> int:
        if self.operation == Operation.DIVIDE:
            return self.b
        return self.a * self.b

    def text(self, language: Language = Language.VI) -> str:
        """
        Display text for the question.

        Arithmetic notation reads the same in every supported language, the
        language argument is accepted so callers always ask for the text of
        the active language.
        """
        if self.operation == Operation.DIVIDE:
            return f"{self.dividend} ÷ {self.a} = ?"
        return f"{self.a} × {self.b} = ?"


@dataclass
class QuizSettings:
    """Configuration settings for a quiz session."""
    question_count: int = 20
    operation: Operation = Operation.BOTH


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session handed to the presentation layer."""
    mode: GameMode
    state: str
    question_text: Optional[str]
    current_index: int
    total_questions: int
    correct_solo: int
    p1_correct: int
    p2_correct: int
    elapsed_seconds: int
    is_running: bool
    is_finished: bool
    winner: Optional[Winner] = None
    operation: Operation = Operation.BOTH
    language: Language = Language.VI
