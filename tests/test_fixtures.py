"""
Test fixtures and sample data for MMart Fun tests.
"""
import random
from typing import List
from unittest.mock import Mock, AsyncMock
import discord

from mmartfun.models import Question, QuizSettings, Operation
from mmartfun.quiz_engine import QuestionGenerator


class TestFixtures:
    """Centralized test fixtures for all test modules."""

    @staticmethod
    def create_sample_questions() -> List[Question]:
        """Create sample questions for testing."""
        return [
            Question(3, 4, Operation.MULTIPLY),
            Question(6, 7, Operation.DIVIDE),
            Question(10, 10, Operation.MULTIPLY),
            Question(1, 9, Operation.DIVIDE),
            Question(5, 2, Operation.MULTIPLY),
        ]

    @staticmethod
    def create_sample_quiz_settings() -> QuizSettings:
        """Create sample quiz settings for testing."""
        return QuizSettings(question_count=5, operation=Operation.BOTH)

    @staticmethod
    def create_seeded_generator(seed: int = 42) -> QuestionGenerator:
        return QuestionGenerator(random.Random(seed))

    @staticmethod
    def create_fixed_generator(questions: List[Question]) -> Mock:
        """Generator double returning the given questions, truncated to the requested count."""
        generator = Mock(spec=QuestionGenerator)
        generator.generate.side_effect = lambda count, operation_filter: list(questions[:count])
        return generator


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MockDiscordObjects:
    """Mock Discord objects for testing bot functionality."""

    @staticmethod
    def create_mock_interaction(channel_id: int = 12345, user_id: int = 67890) -> Mock:
        """Create mock Discord interaction."""
        interaction = Mock(spec=discord.Interaction)
        interaction.channel_id = channel_id
        interaction.user = Mock()
        interaction.user.id = user_id
        interaction.response = Mock()
        interaction.response.is_done.return_value = False
        interaction.response.send_message = AsyncMock()
        interaction.response.edit_message = AsyncMock()
        interaction.followup = Mock()
        interaction.followup.send = AsyncMock()
        interaction.original_response = AsyncMock(return_value=MockDiscordObjects.create_mock_message())
        return interaction

    @staticmethod
    def create_mock_message(message_id: int = 11111, content: str = "Test message") -> Mock:
        """Create mock Discord message."""
        message = Mock(spec=discord.Message)
        message.id = message_id
        message.content = content
        message.edit = AsyncMock()
        message.delete = AsyncMock()
        return message
