"""
Sound feedback for quiz answers.

Clips are played by spawning an external player command (afplay on macOS,
ffplay or paplay elsewhere) so playback never blocks the event loop.
"""
import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from .models import FeedbackEvent

logger = logging.getLogger(__name__)

FEEDBACK_SOUNDS = {
    FeedbackEvent.CORRECT: "clap",
    FeedbackEvent.INCORRECT: "aww",
}

_MAX_CONCURRENT = 4


class SoundPlayer:
    """Fire-and-forget playback of the clap/aww clips."""

    def __init__(
        self,
        sound_directory: str = "./sounds/",
        player_command: Optional[List[str]] = None,
        enabled: bool = True,
        extension: str = "mp3"
    ):
        self.sound_directory = Path(sound_directory)
        self.player_command = list(player_command or ["afplay"])
        self.enabled = enabled
        self.extension = extension
        self._processes: List[subprocess.Popen] = []
        self._stopping: List[subprocess.Popen] = []

    def resolve(self, name: str) -> Optional[Path]:
        """Locate the clip for a sound name, None if the asset is missing."""
        path = self.sound_directory / f"{name}.{self.extension}"
        if not path.is_file():
            return None
        return path

    def play(self, name: str) -> bool:
        """
        Play a clip by name ("clap" or "aww").

        Returns:
            True if a player process was spawned
        """
        if not self.enabled:
            return False

        path = self.resolve(name)
        if path is None:
            logger.warning(f"Sound asset not found: {name}.{self.extension} in {self.sound_directory}")
            return False

        self._reap()
        # kill oldest if too many concurrent
        while len(self._processes) >= _MAX_CONCURRENT:
            self._kill(self._processes.pop(0))

        try:
            process = subprocess.Popen(
                [*self.player_command, str(path)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.error(f"Audio play error for {path}: {e}")
            return False

        self._processes.append(process)
        logger.debug(f"Playing sound {name}")
        return True

    def play_feedback(self, event: FeedbackEvent) -> bool:
        """Feedback listener: clap for a correct answer, aww otherwise."""
        return self.play(FEEDBACK_SOUNDS[event])

    def _reap(self) -> None:
        """Drop finished and killed processes; poll() reaps them."""
        self._processes[:] = [p for p in self._processes if p.poll() is None]
        self._stopping[:] = [p for p in self._stopping if p.poll() is None]

    def _kill(self, process: subprocess.Popen) -> None:
        try:
            process.kill()
            self._stopping.append(process)
        except OSError as e:
            logger.debug(f"Could not stop sound process: {e}")

    def stop_all(self) -> None:
        """Kill all running audio, call on shutdown."""
        for process in self._processes:
            self._kill(process)
        self._processes.clear()

    @property
    def active_count(self) -> int:
        self._reap()
        return len(self._processes)
