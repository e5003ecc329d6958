"""
Unit tests for ConfigManager.
"""
import unittest
from unittest.mock import patch

from mmartfun.config_manager import ConfigManager
from mmartfun.models import Operation, QuizSettings


class TestConfigManager(unittest.TestCase):
    """Test cases for ConfigManager."""

    def setUp(self):
        """Set up test fixtures."""
        self.config_manager = ConfigManager()

    def test_default_settings(self):
        settings = self.config_manager.get_quiz_settings()

        self.assertIsInstance(settings, QuizSettings)
        self.assertEqual(settings.question_count, 20)
        self.assertEqual(settings.operation, Operation.BOTH)
        self.assertTrue(self.config_manager.is_sound_enabled())
        self.assertEqual(self.config_manager.get_player_command(), ["afplay"])

    def test_get_quiz_settings_returns_copy(self):
        settings = self.config_manager.get_quiz_settings()
        settings.question_count = 99
        self.assertEqual(self.config_manager.get_question_count(), 20)

    def test_set_question_count_valid(self):
        result = self.config_manager.set_question_count(10)

        self.assertTrue(result['success'])
        self.assertEqual(self.config_manager.get_question_count(), 10)

    def test_set_question_count_boundaries(self):
        self.assertTrue(self.config_manager.set_question_count(ConfigManager.MIN_QUESTION_COUNT)['success'])
        self.assertTrue(self.config_manager.set_question_count(ConfigManager.MAX_QUESTION_COUNT)['success'])

    def test_set_question_count_out_of_range(self):
        for value in (0, -5, 101):
            result = self.config_manager.set_question_count(value)
            self.assertFalse(result['success'])
            self.assertIn('user_message', result)
        self.assertEqual(self.config_manager.get_question_count(), 20)

    def test_set_question_count_wrong_type(self):
        for value in ("10", 5.5, True, None):
            result = self.config_manager.set_question_count(value)
            self.assertFalse(result['success'])
            self.assertIn("must be an integer", result['error'])

    def test_set_operation_by_value(self):
        result = self.config_manager.set_operation("divide")

        self.assertTrue(result['success'])
        self.assertEqual(self.config_manager.get_operation(), Operation.DIVIDE)

    def test_set_operation_by_member(self):
        self.assertTrue(self.config_manager.set_operation(Operation.MULTIPLY)['success'])
        self.assertEqual(self.config_manager.get_operation(), Operation.MULTIPLY)

    def test_set_operation_case_insensitive(self):
        self.assertTrue(self.config_manager.set_operation(" BOTH ")['success'])
        self.assertEqual(self.config_manager.get_operation(), Operation.BOTH)

    def test_set_operation_invalid(self):
        result = self.config_manager.set_operation("addition")

        self.assertFalse(result['success'])
        self.assertIn("addition", result['error'])
        self.assertEqual(self.config_manager.get_operation(), Operation.BOTH)

    def test_set_sound_directory(self):
        result = self.config_manager.set_sound_directory("./assets/sounds")
        self.assertTrue(result['success'])
        self.assertTrue(self.config_manager.get_sound_directory().endswith("sounds"))

    def test_set_sound_directory_invalid(self):
        self.assertFalse(self.config_manager.set_sound_directory("   ")['success'])
        self.assertFalse(self.config_manager.set_sound_directory(42)['success'])

    @patch('mmartfun.config_manager.Path.resolve', side_effect=OSError("bad path"))
    def test_set_sound_directory_unresolvable(self, mock_resolve):
        result = self.config_manager.set_sound_directory("./sounds")
        self.assertFalse(result['success'])
        self.assertIn("Invalid directory path format", result['error'])

    def test_set_sound_enabled(self):
        self.assertTrue(self.config_manager.set_sound_enabled(False)['success'])
        self.assertFalse(self.config_manager.is_sound_enabled())
        self.assertFalse(self.config_manager.set_sound_enabled("no")['success'])

    def test_set_player_command(self):
        self.assertTrue(self.config_manager.set_player_command("ffplay -nodisp -autoexit")['success'])
        self.assertEqual(self.config_manager.get_player_command(), ["ffplay", "-nodisp", "-autoexit"])

        self.assertFalse(self.config_manager.set_player_command([])['success'])
        self.assertFalse(self.config_manager.set_player_command([1, 2])['success'])

    def test_set_preferences_path(self):
        self.assertTrue(self.config_manager.set_preferences_path("/tmp/prefs.json")['success'])
        self.assertEqual(self.config_manager.get_preferences_path(), "/tmp/prefs.json")
        self.assertFalse(self.config_manager.set_preferences_path("")['success'])

    def test_apply_config(self):
        config = {
            'quiz': {'default_question_count': 12, 'default_operation': 'multiply'},
            'sound': {'enabled': False, 'player_command': ['paplay']},
            'preferences': {'path': './prefs.json'},
        }
        errors = self.config_manager.apply_config(config)

        self.assertEqual(errors, [])
        self.assertEqual(self.config_manager.get_question_count(), 12)
        self.assertEqual(self.config_manager.get_operation(), Operation.MULTIPLY)
        self.assertFalse(self.config_manager.is_sound_enabled())
        self.assertEqual(self.config_manager.get_player_command(), ['paplay'])
        self.assertEqual(self.config_manager.get_preferences_path(), './prefs.json')

    def test_apply_config_keeps_defaults_for_invalid_entries(self):
        config = {'quiz': {'default_question_count': 500, 'default_operation': 'modulo'}}
        errors = self.config_manager.apply_config(config)

        self.assertEqual(len(errors), 2)
        self.assertEqual(self.config_manager.get_question_count(), 20)
        self.assertEqual(self.config_manager.get_operation(), Operation.BOTH)

    def test_apply_empty_config(self):
        self.assertEqual(self.config_manager.apply_config(None), [])
        self.assertEqual(self.config_manager.apply_config({}), [])

    def test_reset_to_defaults(self):
        self.config_manager.set_question_count(5)
        self.config_manager.set_operation("divide")
        self.config_manager.set_sound_enabled(False)

        self.config_manager.reset_to_defaults()

        self.assertEqual(self.config_manager.get_question_count(), 20)
        self.assertEqual(self.config_manager.get_operation(), Operation.BOTH)
        self.assertTrue(self.config_manager.is_sound_enabled())

    def test_validate_settings(self):
        validation = self.config_manager.validate_settings()
        self.assertTrue(validation['valid'])
        self.assertEqual(validation['issues'], [])

    def test_validate_settings_detects_corruption(self):
        self.config_manager._global_settings.question_count = 0
        self.config_manager._global_settings.operation = "both"

        validation = self.config_manager.validate_settings()

        self.assertFalse(validation['valid'])
        self.assertEqual(len(validation['issues']), 2)

    def test_settings_summary(self):
        self.config_manager.set_question_count(15)
        self.config_manager.set_operation("divide")

        summary = self.config_manager.get_settings_summary()

        self.assertIn("15", summary)
        self.assertIn("division", summary)
        self.assertIn("Sound: on", summary)


if __name__ == '__main__':
    unittest.main()
