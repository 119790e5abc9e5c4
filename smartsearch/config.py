"""Controller configuration and persisted JSON defaults.

``SearchConfiguration`` is validated on construction; bad values are
programmer errors and raise ``ValueError`` immediately. Persisted defaults
live in the user config directory. Reading them is defensive: malformed or
missing config falls back safely and invalid individual values are dropped.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, replace
from enum import Enum
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "smartsearch"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
SEARCH_DEFAULTS_KEY = "search"


class SearchTriggerMode(str, Enum):
    """When typed text turns into a search.

    ``ON_EDIT`` searches on every change (debounced); ``ON_SUBMIT`` only on an
    explicit submit.
    """

    ON_EDIT = "on_edit"
    ON_SUBMIT = "on_submit"


@dataclass(frozen=True)
class SearchConfiguration:
    debounce_seconds: float = 0.3
    case_sensitive: bool = False
    min_search_length: int = 0
    page_size: int = 20
    cache_results: bool = True
    max_cache_size: int = 100
    fuzzy_search_enabled: bool = False
    fuzzy_threshold: float = 0.3
    trigger_mode: SearchTriggerMode = SearchTriggerMode.ON_EDIT

    def __post_init__(self) -> None:
        if self.debounce_seconds < 0:
            raise ValueError("debounce_seconds must be non-negative")
        if self.min_search_length < 0:
            raise ValueError("min_search_length must be non-negative")
        if self.page_size <= 0:
            raise ValueError("page_size must be positive")
        if self.max_cache_size < 0:
            raise ValueError("max_cache_size must be non-negative")
        validate_fuzzy_threshold(self.fuzzy_threshold)
        if not isinstance(self.trigger_mode, SearchTriggerMode):
            object.__setattr__(self, "trigger_mode", SearchTriggerMode(self.trigger_mode))

    def with_changes(self, **changes: object) -> SearchConfiguration:
        """Return a validated copy with ``changes`` applied."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["trigger_mode"] = self.trigger_mode.value
        return data


def validate_fuzzy_threshold(value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("fuzzy_threshold must be a number")
    if not 0.0 <= value <= 1.0:
        raise ValueError("fuzzy_threshold must be between 0.0 and 1.0")


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are ignored; failing to remember defaults is not fatal.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError:
        pass


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_FIELD_CHECKS = {
    "debounce_seconds": lambda v: _is_number(v) and v >= 0,
    "case_sensitive": lambda v: isinstance(v, bool),
    "min_search_length": lambda v: _is_int(v) and v >= 0,
    "page_size": lambda v: _is_int(v) and v > 0,
    "cache_results": lambda v: isinstance(v, bool),
    "max_cache_size": lambda v: _is_int(v) and v >= 0,
    "fuzzy_search_enabled": lambda v: isinstance(v, bool),
    "fuzzy_threshold": lambda v: _is_number(v) and 0.0 <= v <= 1.0,
    "trigger_mode": lambda v: isinstance(v, str) and v in {mode.value for mode in SearchTriggerMode},
}


def load_search_defaults() -> dict[str, object]:
    """Load persisted ``SearchConfiguration`` overrides.

    Unknown keys and values of the wrong type or range are dropped, so the
    result can always be splatted into ``SearchConfiguration``.
    """
    value = load_config().get(SEARCH_DEFAULTS_KEY)
    if not isinstance(value, dict):
        return {}
    defaults: dict[str, object] = {}
    for key, raw in value.items():
        check = _FIELD_CHECKS.get(key)
        if check is None or not check(raw):
            continue
        defaults[key] = SearchTriggerMode(raw) if key == "trigger_mode" else raw
    return defaults


def save_search_defaults(configuration: SearchConfiguration) -> None:
    config = load_config()
    config[SEARCH_DEFAULTS_KEY] = configuration.to_dict()
    save_config(config)


def load_search_configuration(**overrides: object) -> SearchConfiguration:
    """Build a configuration from persisted defaults with ``overrides`` on top."""
    values = load_search_defaults()
    values.update(overrides)
    return SearchConfiguration(**values)
