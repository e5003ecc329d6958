"""
Quiz session controller for MMart Fun.
Owns the session state machine: start, answer evaluation, skipping, duel
turn-taking, completion and winner computation.
"""
import logging
import time
from enum import Enum
from typing import Callable, Dict, List, Optional, Any

from .models import (
    FeedbackEvent,
    GameMode,
    Language,
    Operation,
    Question,
    QuizSettings,
    SessionSnapshot,
    Winner,
)
from .quiz_engine import QuestionGenerator, SessionTimer


class SessionState(Enum):
    """Enumeration of possible quiz session states."""
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"


SnapshotListener = Callable[[SessionSnapshot], Any]
FeedbackListener = Callable[[FeedbackEvent], Any]


class QuizController:
    """
    Orchestrates a single quiz session.

    Every public action runs to completion before listeners are notified, so
    a listener never observes a half-updated session. Actions that do not
    apply to the current state (answering after the session finished, skipping
    in a duel, a stale tick) are ignored without raising.
    """

    def __init__(
        self,
        session_id: str = "default",
        generator: Optional[QuestionGenerator] = None,
        settings: Optional[QuizSettings] = None,
        clock: Callable[[], float] = time.monotonic,
        language_provider: Optional[Callable[[], Language]] = None,
        tick_interval: float = 1.0
    ):
        """
        Initialize the quiz controller.

        Args:
            session_id: Identifier used in log records (the Discord channel id)
            generator: Question source, a fresh QuestionGenerator if None
            settings: Default question count and operation filter
            clock: Monotonic clock used to compute elapsed seconds
            language_provider: Returns the active interface language
            tick_interval: Seconds between timer ticks
        """
        self.logger = logging.getLogger(__name__)
        self.session_id = str(session_id)
        self.generator = generator or QuestionGenerator()
        self.settings = settings or QuizSettings()
        self._clock = clock
        self._language_provider = language_provider or (lambda: Language.VI)
        self._timer = SessionTimer(self.session_id, tick_interval)

        self._state = SessionState.IDLE
        self._mode = GameMode.SOLO
        self._operation = self.settings.operation
        self._questions: List[Question] = []
        self._current_index = 0
        self._scores: Dict[int, int] = {1: 0, 2: 0}
        self._elapsed_seconds = 0
        self._start_timestamp = 0.0
        self._winner: Optional[Winner] = None

        self._listeners: List[SnapshotListener] = []
        self._feedback_listeners: List[FeedbackListener] = []

    # -- observation --------------------------------------------------------

    def subscribe(self, listener: SnapshotListener) -> None:
        """Register a callback receiving a snapshot after every change."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def add_feedback_listener(self, listener: FeedbackListener) -> None:
        """Register a callback receiving CORRECT/INCORRECT feedback events."""
        if listener not in self._feedback_listeners:
            self._feedback_listeners.append(listener)

    def remove_feedback_listener(self, listener: FeedbackListener) -> None:
        if listener in self._feedback_listeners:
            self._feedback_listeners.remove(listener)

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                self.logger.exception(f"Snapshot listener failed for session {self.session_id}")

    def _emit_feedback(self, event: FeedbackEvent) -> None:
        for listener in list(self._feedback_listeners):
            try:
                listener(event)
            except Exception:
                self.logger.exception(f"Feedback listener failed for session {self.session_id}")

    # -- lifecycle ----------------------------------------------------------

    def start(
        self,
        mode: GameMode = GameMode.SOLO,
        operation_filter: Optional[Operation] = None,
        question_count: Optional[int] = None
    ) -> SessionSnapshot:
        """
        Start a new session, discarding any session in progress.

        Args:
            mode: SOLO or DUEL
            operation_filter: Operation filter, the configured default if None
            question_count: Number of questions, the configured default if None

        Returns:
            Snapshot of the freshly started session
        """
        self._timer.cancel()

        if operation_filter is None:
            operation_filter = self.settings.operation
        if question_count is None:
            question_count = self.settings.question_count

        self._mode = mode
        self._operation = operation_filter
        self._scores = {1: 0, 2: 0}
        self._current_index = 0
        self._elapsed_seconds = 0
        self._winner = None
        self._questions = self.generator.generate(question_count, operation_filter)
        self._state = SessionState.RUNNING
        self._start_timestamp = self._clock()

        self.logger.info(
            f"Started {mode.value} session {self.session_id}: "
            f"operation={operation_filter.value}, questions={len(self._questions)}",
            extra={
                'event_type': 'session_started',
                'session_id': self.session_id,
                'mode': mode.value,
                'operation': operation_filter.value,
                'question_count': len(self._questions),
                'timestamp': time.time()
            }
        )

        if not self._questions:
            self._complete()
        else:
            self._timer.start(self.tick)
        self._notify()
        return self.snapshot()

    def submit_answer(self, value: int, player: int = 1) -> Optional[bool]:
        """
        Evaluate an answer to the current question.

        In solo mode the answer always counts for player 1 and the session
        moves on to the next question. In duel mode the index stays put until
        advance_turn() is called, and every submission is scored on its own.

        Args:
            value: Answer given by the player
            player: 1 or 2, only meaningful in duel mode

        Returns:
            True/False for a correct/incorrect answer, None if the answer was ignored
        """
        if not self._accepts_actions("submit_answer"):
            return None

        if self._mode == GameMode.SOLO:
            player = 1
        elif player not in (1, 2):
            self.logger.debug(f"Ignoring answer from unknown player {player} in session {self.session_id}")
            return None

        question = self._questions[self._current_index]
        correct = question.answer == value
        if correct:
            self._scores[player] += 1
            self._emit_feedback(FeedbackEvent.CORRECT)
        else:
            self._emit_feedback(FeedbackEvent.INCORRECT)

        self.logger.debug(
            f"Session {self.session_id}: player {player} answered {value} to "
            f"question {self._current_index + 1} ({'correct' if correct else 'incorrect'})"
        )

        if self._mode == GameMode.SOLO:
            self._advance()
        self._notify()
        return correct

    def skip(self) -> bool:
        """Skip the current question without scoring (solo only)."""
        if not self._accepts_actions("skip"):
            return False
        if self._mode != GameMode.SOLO:
            self.logger.debug(f"Ignoring skip in duel session {self.session_id}")
            return False

        self._advance()
        self._notify()
        return True

    def advance_turn(self) -> bool:
        """Move a duel to the next question, whatever was answered (duel only)."""
        if not self._accepts_actions("advance_turn"):
            return False
        if self._mode != GameMode.DUEL:
            self.logger.debug(f"Ignoring advance_turn in solo session {self.session_id}")
            return False

        self._advance()
        self._notify()
        return True

    def finish(self) -> bool:
        """
        Finish the running session.

        Returns:
            True if the session was finished, False if it was not running
        """
        if self._state != SessionState.RUNNING:
            self.logger.debug(f"Ignoring finish for session {self.session_id} in state {self._state.value}")
            return False

        self._complete()
        self._notify()
        return True

    def tick(self) -> bool:
        """
        Recompute elapsed seconds from the start timestamp.

        Returns:
            True if the session was running and the tick was applied
        """
        if self._state != SessionState.RUNNING:
            return False

        elapsed = int(self._clock() - self._start_timestamp)
        if elapsed != self._elapsed_seconds:
            self._elapsed_seconds = elapsed
            self._notify()
        return True

    def shutdown(self) -> None:
        """Stop the timer and drop listeners, leaving the session state as is."""
        self._timer.cancel()
        self._listeners.clear()
        self._feedback_listeners.clear()

    def _accepts_actions(self, operation: str) -> bool:
        if self._state != SessionState.RUNNING or self._current_index >= len(self._questions):
            self.logger.debug(
                f"Ignoring {operation} for session {self.session_id} in state {self._state.value}"
            )
            return False
        return True

    def _advance(self) -> None:
        self._current_index += 1
        if self._current_index >= len(self._questions):
            self._complete()

    def _complete(self) -> None:
        self._timer.cancel()
        self._elapsed_seconds = int(self._clock() - self._start_timestamp)
        self._state = SessionState.FINISHED

        if self._mode == GameMode.DUEL:
            self._winner = self.compute_winner(self._scores[1], self._scores[2])

        self.logger.info(
            f"Session {self.session_id} finished after {self._elapsed_seconds}s",
            extra={
                'event_type': 'session_finished',
                'session_id': self.session_id,
                'mode': self._mode.value,
                'scores': dict(self._scores),
                'winner': self._winner.value if self._winner else None,
                'elapsed_seconds': self._elapsed_seconds,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def compute_winner(p1_correct: int, p2_correct: int) -> Winner:
        if p1_correct > p2_correct:
            return Winner.PLAYER1
        if p2_correct > p1_correct:
            return Winner.PLAYER2
        return Winner.TIE

    # -- read access --------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def mode(self) -> GameMode:
        return self._mode

    @property
    def operation(self) -> Operation:
        return self._operation

    @property
    def questions(self) -> tuple:
        return tuple(self._questions)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_question(self) -> Optional[Question]:
        if self._current_index < len(self._questions):
            return self._questions[self._current_index]
        return None

    @property
    def correct_solo(self) -> int:
        """Correct answers of the single player; always 0 in duel mode."""
        return self._scores[1] if self._mode == GameMode.SOLO else 0

    @property
    def p1_correct(self) -> int:
        return self._scores[1]

    @property
    def p2_correct(self) -> int:
        return self._scores[2]

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed_seconds

    @property
    def is_running(self) -> bool:
        return self._state == SessionState.RUNNING

    @property
    def is_finished(self) -> bool:
        return self._state == SessionState.FINISHED

    @property
    def winner(self) -> Optional[Winner]:
        return self._winner

    @property
    def timer(self) -> SessionTimer:
        return self._timer

    def snapshot(self) -> SessionSnapshot:
        """Build a read-only snapshot of the session for the active language."""
        language = self._language_provider()
        question = self.current_question if self.is_running else None
        return SessionSnapshot(
            mode=self._mode,
            state=self._state.value,
            question_text=question.text(language) if question else None,
            current_index=self._current_index,
            total_questions=len(self._questions),
            correct_solo=self.correct_solo,
            p1_correct=self._scores[1],
            p2_correct=self._scores[2],
            elapsed_seconds=self._elapsed_seconds,
            is_running=self.is_running,
            is_finished=self.is_finished,
            winner=self._winner,
            operation=self._operation,
            language=language
        )

    def get_session_progress(self) -> Dict[str, Any]:
        """
        Get progress information for the session.

        Returns:
            Dictionary with progress info
        """
        return {
            'session_id': self.session_id,
            'state': self._state.value,
            'mode': self._mode.value,
            'operation': self._operation.value,
            'current_question': min(self._current_index + 1, len(self._questions)),
            'total_questions': len(self._questions),
            'scores': {'player1': self._scores[1], 'player2': self._scores[2]},
            'elapsed_seconds': self._elapsed_seconds,
            'winner': self._winner.value if self._winner else None
        }
