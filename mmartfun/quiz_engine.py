"""
Quiz engine core logic for MMart Fun.
Handles question generation and the elapsed-time ticker of a session.
"""
import random
import asyncio
import logging
import time
from typing import List, Optional, Callable

from .models import Question, Operation

# Set up logger for timer operations
logger = logging.getLogger(__name__)

OPERAND_MIN = 1
OPERAND_MAX = 10
DEFAULT_QUESTION_COUNT = 20


class TimerLifecycleLogger:
    """Structured logging for timer lifecycle events."""

    @staticmethod
    def log_timer_start(session_id: str, interval: float) -> None:
        """Log ticker start."""
        logger.info(
            f"Timer lifecycle: STARTED - Session {session_id}, Interval {interval}s",
            extra={
                'event_type': 'timer_started',
                'session_id': session_id,
                'interval': interval,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_tick(session_id: str, tick_count: int) -> None:
        """Log ticks (throttled to avoid spam)."""
        if tick_count % 30 == 0:
            logger.debug(
                f"Timer lifecycle: TICK - Session {session_id}, Tick {tick_count}",
                extra={
                    'event_type': 'timer_tick',
                    'session_id': session_id,
                    'tick_count': tick_count,
                    'timestamp': time.time()
                }
            )

    @staticmethod
    def log_timer_completion(session_id: str, completion_type: str, tick_count: int) -> None:
        """Log ticker completion (cancellation or loop shutdown)."""
        logger.info(
            f"Timer lifecycle: COMPLETED - Session {session_id}, Type {completion_type}, Ticks {tick_count}",
            extra={
                'event_type': 'timer_completed',
                'session_id': session_id,
                'completion_type': completion_type,
                'tick_count': tick_count,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_state_transition(session_id: str, from_state: str, to_state: str, reason: str = None) -> None:
        """Log timer state transitions."""
        logger.debug(
            f"Timer lifecycle: STATE_TRANSITION - Session {session_id}, {from_state} -> {to_state}" +
            (f" ({reason})" if reason else ""),
            extra={
                'event_type': 'timer_state_transition',
                'session_id': session_id,
                'from_state': from_state,
                'to_state': to_state,
                'reason': reason,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_error(session_id: str, error_type: str, error_message: str, operation: str) -> None:
        """Log timer-related errors with context."""
        logger.error(
            f"Timer lifecycle: ERROR - Session {session_id}, Operation {operation}, Type {error_type}: {error_message}",
            extra={
                'event_type': 'timer_error',
                'session_id': session_id,
                'error_type': error_type,
                'error_message': error_message,
                'operation': operation,
                'timestamp': time.time()
            }
        )


class QuestionGenerator:
    """Produces randomized multiplication and division questions."""

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Initialize the generator.

        Args:
            rng: Random source, the module-level generator is used if None
        """
        self._rng = rng or random.Random()

    def generate(
        self,
        count: int = DEFAULT_QUESTION_COUNT,
        operation_filter: Operation = Operation.BOTH
    ) -> List[Question]:
        """
        Generate a fresh question sequence.

        Args:
            count: Number of questions to generate
            operation_filter: MULTIPLY, DIVIDE, or BOTH to pick per question

        Returns:
            List of generated questions, empty when count is 0 or negative
        """
        questions = [self.generate_one(operation_filter) for _ in range(max(count, 0))]
        logger.debug(f"Generated {len(questions)} questions with filter {operation_filter.value}")
        return questions

    def generate_one(self, operation_filter: Operation = Operation.BOTH) -> Question:
        """Generate a single question, resolving BOTH to a concrete operation."""
        operation = self.resolve_operation(operation_filter)
        a = self._rng.randint(OPERAND_MIN, OPERAND_MAX)
        b = self._rng.randint(OPERAND_MIN, OPERAND_MAX)
        return Question(a=a, b=b, operation=operation)

    def resolve_operation(self, operation_filter: Operation) -> Operation:
        if operation_filter == Operation.BOTH:
            return self._rng.choice([Operation.MULTIPLY, Operation.DIVIDE])
        return operation_filter


class SessionTimer:
    """
    Cancellable one-second ticker bound to a session.

    The ticker runs as an asyncio task on the running loop. Without a running
    loop nothing is scheduled and the owner drives ticks itself.
    """

    def __init__(self, session_id: str = None, interval: float = 1.0):
        """Initialize the timer."""
        self._task: Optional[asyncio.Task] = None
        self._is_cancelled = False
        self._session_id = session_id
        self._interval = interval
        self._tick_count = 0

    def start(self, tick_callback: Callable[[], None]) -> bool:
        """
        Start ticking, cancelling any ticker already running.

        Args:
            tick_callback: Called once per interval while the ticker is active

        Returns:
            True if a ticker task was scheduled, False if no event loop is running
        """
        self.cancel()
        self._is_cancelled = False
        self._tick_count = 0

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            TimerLifecycleLogger.log_timer_state_transition(
                self._session_id,
                "idle",
                "manual",
                "no running event loop"
            )
            return False

        self._task = loop.create_task(self._run(tick_callback))
        TimerLifecycleLogger.log_timer_start(self._session_id, self._interval)
        return True

    async def _run(self, tick_callback: Callable[[], None]) -> None:
        try:
            while not self._is_cancelled:
                await asyncio.sleep(self._interval)
                if self._is_cancelled:
                    break
                self._tick_count += 1
                TimerLifecycleLogger.log_timer_tick(self._session_id, self._tick_count)
                try:
                    tick_callback()
                except Exception as e:
                    TimerLifecycleLogger.log_timer_error(
                        self._session_id,
                        "tick_callback_error",
                        str(e),
                        "_run"
                    )
        except asyncio.CancelledError:
            TimerLifecycleLogger.log_timer_completion(
                self._session_id,
                "asyncio_cancelled",
                self._tick_count
            )
            raise

    def cancel(self) -> None:
        """Cancel the ticker. Safe to call when nothing is running."""
        self._is_cancelled = True
        if self._task and not self._task.done():
            self._task.cancel()
            TimerLifecycleLogger.log_timer_state_transition(
                self._session_id,
                "running",
                "cancelled",
                "task cancelled"
            )
        self._task = None

    @property
    def is_active(self) -> bool:
        """Check if a ticker task is scheduled."""
        return self._task is not None and not self._task.done() and not self._is_cancelled

    @property
    def is_cancelled(self) -> bool:
        return self._is_cancelled

    @property
    def tick_count(self) -> int:
        return self._tick_count
