"""
Unit tests for SoundPlayer.
"""
import unittest
import tempfile
import shutil
from pathlib import Path
from unittest.mock import Mock, patch

from mmartfun.sound_player import SoundPlayer, FEEDBACK_SOUNDS
from mmartfun.models import FeedbackEvent


def _running_process() -> Mock:
    process = Mock()
    process.poll.return_value = None
    return process


class TestSoundPlayer(unittest.TestCase):
    """Test cases for SoundPlayer."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        for name in ("clap", "aww"):
            (Path(self.temp_dir) / f"{name}.mp3").write_bytes(b"ID3")
        self.player = SoundPlayer(self.temp_dir, player_command=["afplay"])

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    @patch('mmartfun.sound_player.subprocess.Popen')
    def test_play_spawns_player(self, mock_popen):
        mock_popen.return_value = _running_process()

        self.assertTrue(self.player.play("clap"))

        args = mock_popen.call_args.args[0]
        self.assertEqual(args[0], "afplay")
        self.assertTrue(args[1].endswith("clap.mp3"))

    @patch('mmartfun.sound_player.subprocess.Popen')
    def test_missing_asset_is_skipped(self, mock_popen):
        with self.assertLogs('mmartfun.sound_player', level='WARNING'):
            self.assertFalse(self.player.play("fanfare"))
        mock_popen.assert_not_called()

    @patch('mmartfun.sound_player.subprocess.Popen', side_effect=FileNotFoundError("afplay"))
    def test_missing_player_command_is_logged(self, mock_popen):
        with self.assertLogs('mmartfun.sound_player', level='ERROR'):
            self.assertFalse(self.player.play("aww"))

    @patch('mmartfun.sound_player.subprocess.Popen')
    def test_disabled_player_is_silent(self, mock_popen):
        self.player.enabled = False
        self.assertFalse(self.player.play("clap"))
        mock_popen.assert_not_called()

    @patch('mmartfun.sound_player.subprocess.Popen')
    def test_feedback_mapping(self, mock_popen):
        mock_popen.return_value = _running_process()

        self.player.play_feedback(FeedbackEvent.CORRECT)
        self.player.play_feedback(FeedbackEvent.INCORRECT)

        played = [Path(c.args[0][1]).stem for c in mock_popen.call_args_list]
        self.assertEqual(played, ["clap", "aww"])
        self.assertEqual(FEEDBACK_SOUNDS[FeedbackEvent.CORRECT], "clap")

    @patch('mmartfun.sound_player.subprocess.Popen')
    def test_concurrency_limit_kills_oldest(self, mock_popen):
        processes = [_running_process() for _ in range(5)]
        mock_popen.side_effect = processes

        for _ in range(5):
            self.player.play("clap")

        processes[0].kill.assert_called_once()
        self.assertEqual(self.player.active_count, 4)

    @patch('mmartfun.sound_player.subprocess.Popen')
    def test_killing_oldest_does_not_wait(self, mock_popen):
        processes = [_running_process() for _ in range(5)]
        mock_popen.side_effect = processes

        for _ in range(5):
            self.player.play("clap")

        processes[0].wait.assert_not_called()
        self.assertIn(processes[0], self.player._stopping)

        processes[0].poll.return_value = -9
        self.player._reap()
        self.assertNotIn(processes[0], self.player._stopping)

    @patch('mmartfun.sound_player.subprocess.Popen')
    def test_finished_processes_are_reaped(self, mock_popen):
        finished = Mock()
        finished.poll.return_value = 0
        mock_popen.return_value = finished

        self.player.play("clap")

        self.assertEqual(self.player.active_count, 0)

    @patch('mmartfun.sound_player.subprocess.Popen')
    def test_stop_all(self, mock_popen):
        processes = [_running_process(), _running_process()]
        mock_popen.side_effect = processes
        self.player.play("clap")
        self.player.play("aww")

        self.player.stop_all()

        for process in processes:
            process.kill.assert_called_once()
        self.assertEqual(self.player.active_count, 0)


if __name__ == '__main__':
    unittest.main()
