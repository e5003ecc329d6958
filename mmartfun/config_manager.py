"""
Configuration manager for MMart Fun settings and quiz parameters.
"""
import logging
from typing import Optional, Dict, Any, List
from pathlib import Path

from .models import Operation, QuizSettings


class ConfigManager:
    """Manages game configuration settings and quiz parameters."""

    # Default configuration values
    DEFAULT_QUESTION_COUNT = 20
    DEFAULT_OPERATION = Operation.BOTH
    DEFAULT_SOUND_DIRECTORY = "./sounds/"
    DEFAULT_SOUND_ENABLED = True
    DEFAULT_PLAYER_COMMAND = ["afplay"]
    DEFAULT_PREFERENCES_PATH = "./preferences.json"

    # Validation limits
    MIN_QUESTION_COUNT = 1
    MAX_QUESTION_COUNT = 100

    OPERATION_LABELS = {
        Operation.MULTIPLY: "multiplication",
        Operation.DIVIDE: "division",
        Operation.BOTH: "multiplication and division",
    }

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._global_settings = QuizSettings()
        self._sound_directory = self.DEFAULT_SOUND_DIRECTORY
        self._sound_enabled = self.DEFAULT_SOUND_ENABLED
        self._player_command = list(self.DEFAULT_PLAYER_COMMAND)
        self._preferences_path = self.DEFAULT_PREFERENCES_PATH

    def get_quiz_settings(self) -> QuizSettings:
        """
        Get current quiz settings.

        Returns:
            QuizSettings object with current configuration
        """
        return QuizSettings(
            question_count=self._global_settings.question_count,
            operation=self._global_settings.operation
        )

    def set_question_count(self, count: int) -> Dict[str, Any]:
        """
        Set the number of questions generated per session.

        Args:
            count: Number of questions

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        # bool is an int subclass
        if not isinstance(count, int) or isinstance(count, bool):
            error_msg = f"Question count must be an integer, got {type(count).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a number, got {type(count).__name__}"
            }

        if count < self.MIN_QUESTION_COUNT:
            error_msg = f"Question count must be at least {self.MIN_QUESTION_COUNT}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Too few questions: Minimum is {self.MIN_QUESTION_COUNT}"
            }

        if count > self.MAX_QUESTION_COUNT:
            error_msg = f"Question count cannot exceed {self.MAX_QUESTION_COUNT}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Too many questions: Maximum is {self.MAX_QUESTION_COUNT}"
            }

        self._global_settings.question_count = count
        self.logger.info(f"Question count set to {count}")
        return {
            'success': True,
            'message': f"Question count set to {count}",
            'user_message': f"✅ Question count set to {count}"
        }

    def get_question_count(self) -> int:
        return self._global_settings.question_count

    def set_operation(self, operation) -> Dict[str, Any]:
        """
        Set the default operation filter.

        Args:
            operation: Operation member or its value ("multiply", "divide", "both")

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        try:
            resolved = operation if isinstance(operation, Operation) else Operation(str(operation).strip().lower())
        except ValueError:
            valid = ", ".join(op.value for op in Operation)
            error_msg = f"Unknown operation '{operation}', expected one of: {valid}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Unknown operation: {operation}. Use one of: {valid}"
            }

        self._global_settings.operation = resolved
        label = self.OPERATION_LABELS[resolved]
        self.logger.info(f"Operation set to {resolved.value}")
        return {
            'success': True,
            'message': f"Operation set to {resolved.value}",
            'user_message': f"✅ Questions will use {label}"
        }

    def get_operation(self) -> Operation:
        return self._global_settings.operation

    def set_sound_directory(self, directory: str) -> Dict[str, Any]:
        """
        Set the directory holding the clap/aww sound clips.

        Args:
            directory: Path to the sound directory

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(directory, str):
            error_msg = f"Sound directory must be a string, got {type(directory).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a path string, got {type(directory).__name__}"
            }

        if not directory.strip():
            error_msg = "Sound directory cannot be empty"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "❌ Directory path cannot be empty"
            }

        try:
            normalized_path = str(Path(directory).resolve())
        except (OSError, ValueError) as e:
            error_msg = f"Invalid directory path format: {e}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid path format: {directory}"
            }

        self._sound_directory = normalized_path
        self.logger.info(f"Sound directory set to {normalized_path}")
        return {
            'success': True,
            'message': f"Sound directory set to {normalized_path}",
            'user_message': f"✅ Sound directory set to {normalized_path}"
        }

    def get_sound_directory(self) -> str:
        return self._sound_directory

    def set_sound_enabled(self, enabled: bool) -> Dict[str, Any]:
        if not isinstance(enabled, bool):
            error_msg = f"Sound enabled must be a boolean, got {type(enabled).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected true/false, got {type(enabled).__name__}"
            }

        self._sound_enabled = enabled
        state = "enabled" if enabled else "disabled"
        self.logger.info(f"Sound {state}")
        return {
            'success': True,
            'message': f"Sound {state}",
            'user_message': f"✅ Sound {state}"
        }

    def is_sound_enabled(self) -> bool:
        return self._sound_enabled

    def set_player_command(self, command) -> Dict[str, Any]:
        """
        Set the external command used to play a sound file.

        Args:
            command: Command string or argument list, the file path is appended

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if isinstance(command, str):
            command = command.split()
        if not isinstance(command, list) or not command or not all(isinstance(part, str) for part in command):
            error_msg = f"Player command must be a non-empty list of strings, got {command!r}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "❌ Invalid sound player command"
            }

        self._player_command = list(command)
        self.logger.info(f"Sound player command set to {' '.join(command)}")
        return {
            'success': True,
            'message': f"Sound player command set to {' '.join(command)}",
            'user_message': f"✅ Sound player set to `{' '.join(command)}`"
        }

    def get_player_command(self) -> List[str]:
        return list(self._player_command)

    def set_preferences_path(self, path: str) -> Dict[str, Any]:
        if not isinstance(path, str) or not path.strip():
            error_msg = f"Preferences path must be a non-empty string, got {path!r}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "❌ Invalid preferences path"
            }

        self._preferences_path = path
        self.logger.info(f"Preferences path set to {path}")
        return {
            'success': True,
            'message': f"Preferences path set to {path}",
            'user_message': f"✅ Preferences stored in {path}"
        }

    def get_preferences_path(self) -> str:
        return self._preferences_path

    def apply_config(self, config: Optional[Dict[str, Any]]) -> List[str]:
        """
        Apply a loaded config.json dictionary.

        Invalid entries are logged and skipped, keeping their defaults.

        Args:
            config: Parsed configuration, may be None

        Returns:
            List of error messages for entries that could not be applied
        """
        errors = []
        if not config:
            return errors

        quiz_config = config.get('quiz', {})
        sound_config = config.get('sound', {})
        preferences_config = config.get('preferences', {})

        results = []
        if 'default_question_count' in quiz_config:
            results.append(self.set_question_count(quiz_config['default_question_count']))
        if 'default_operation' in quiz_config:
            results.append(self.set_operation(quiz_config['default_operation']))
        if 'enabled' in sound_config:
            results.append(self.set_sound_enabled(sound_config['enabled']))
        if 'directory' in sound_config:
            results.append(self.set_sound_directory(sound_config['directory']))
        if 'player_command' in sound_config:
            results.append(self.set_player_command(sound_config['player_command']))
        if 'path' in preferences_config:
            results.append(self.set_preferences_path(preferences_config['path']))

        for result in results:
            if not result['success']:
                errors.append(result['error'])

        if errors:
            self.logger.warning(f"Configuration applied with {len(errors)} errors")
        else:
            self.logger.info("Configuration applied successfully")
        return errors

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values."""
        self._global_settings = QuizSettings(
            question_count=self.DEFAULT_QUESTION_COUNT,
            operation=self.DEFAULT_OPERATION
        )
        self._sound_directory = self.DEFAULT_SOUND_DIRECTORY
        self._sound_enabled = self.DEFAULT_SOUND_ENABLED
        self._player_command = list(self.DEFAULT_PLAYER_COMMAND)
        self._preferences_path = self.DEFAULT_PREFERENCES_PATH
        self.logger.info("All settings reset to default values")

    def validate_settings(self) -> Dict[str, Any]:
        """
        Validate current settings and return validation results.

        Returns:
            Dictionary with validation results and any issues found
        """
        validation_result = {
            "valid": True,
            "issues": []
        }

        count = self._global_settings.question_count
        if (not isinstance(count, int) or
                count < self.MIN_QUESTION_COUNT or
                count > self.MAX_QUESTION_COUNT):
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid question count: {count}")

        if not isinstance(self._global_settings.operation, Operation):
            validation_result["valid"] = False
            validation_result["issues"].append(
                f"Invalid operation: {self._global_settings.operation}"
            )

        if not isinstance(self._sound_directory, str) or not self._sound_directory.strip():
            validation_result["valid"] = False
            validation_result["issues"].append(
                f"Invalid sound directory: {self._sound_directory}"
            )

        return validation_result

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        sound_str = "on" if self._sound_enabled else "off"
        return (
            f"Quiz Settings:\n"
            f"• Questions: {self._global_settings.question_count}\n"
            f"• Operation: {self.OPERATION_LABELS[self._global_settings.operation]}\n"
            f"• Sound: {sound_str} ({self._sound_directory})"
        )
