"""
Data manager for the persisted language preference.
"""
import json
import logging
from typing import Callable, Dict, List, Optional, Any
from pathlib import Path

from .models import Language

LANGUAGE_KEY = "MMartFun_Lang"
DEFAULT_LANGUAGE = Language.VI


class PreferenceStore:
    """
    Stores the interface language in a small JSON file.

    An absent value means the game has never been launched before, callers
    should then ask the player to pick a language.
    """

    def __init__(self, path: str = "./preferences.json"):
        """
        Initialize PreferenceStore.

        Args:
            path: Path to the JSON preference file
        """
        self.path = Path(path)
        self.logger = logging.getLogger(__name__)
        self._language: Optional[Language] = None
        self._loaded = False
        self._listeners: List[Callable[[Language], Any]] = []

    def load(self) -> Optional[Language]:
        """
        Read the stored language from disk.

        Returns:
            Stored language, or None if nothing valid is stored
        """
        self._loaded = True
        self._language = None

        data = self._read_file()
        if data is None:
            return None

        raw = data.get(LANGUAGE_KEY)
        if raw is None:
            return None

        try:
            self._language = Language(raw)
        except ValueError:
            self.logger.warning(f"Ignoring unknown stored language {raw!r} in {self.path}")
            return None

        self.logger.info(f"Loaded language preference: {self._language.value}")
        return self._language

    def _read_file(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            self.logger.debug(f"No preference file at {self.path}")
            return None

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self.logger.error(f"Invalid JSON in {self.path}: {e}")
            return None
        except OSError as e:
            self.logger.error(f"Failed to read preference file {self.path}: {e}")
            return None

        if not isinstance(data, dict):
            self.logger.error(f"Preference file {self.path} must contain a JSON object")
            return None
        return data

    def get_language(self) -> Optional[Language]:
        """
        Get the stored language.

        Returns:
            Stored language, None on first launch
        """
        if not self._loaded:
            self.load()
        return self._language

    def effective_language(self) -> Language:
        """Get the stored language, falling back to Vietnamese."""
        return self.get_language() or DEFAULT_LANGUAGE

    def is_first_launch(self) -> bool:
        return self.get_language() is None

    def set_language(self, language) -> bool:
        """
        Persist the language and notify subscribers.

        Args:
            language: Language member or its value ("vi", "en")

        Returns:
            True if the value was written to disk
        """
        language = language if isinstance(language, Language) else Language(language)
        self._language = language
        self._loaded = True

        data = self._read_file() or {}
        data[LANGUAGE_KEY] = language.value
        saved = self._write_file(data)

        for listener in list(self._listeners):
            try:
                listener(language)
            except Exception:
                self.logger.exception("Language listener failed")
        return saved

    def _write_file(self, data: Dict[str, Any]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            self.logger.error(f"Failed to write preference file {self.path}: {e}")
            return False

        self.logger.info(f"Saved language preference: {data.get(LANGUAGE_KEY)}")
        return True

    def subscribe(self, listener: Callable[[Language], Any]) -> None:
        """Register a callback invoked whenever the language changes."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[Language], Any]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
