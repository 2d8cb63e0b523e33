import os

from json_pilot.models import FormattingOptions

_TRUE_VALUES = {"1", "true", "yes", "on"}


def load_formatting_options() -> FormattingOptions:
    tab_size = int(os.getenv("JSON_PILOT_TAB_SIZE", "2"))
    insert_spaces = os.getenv("JSON_PILOT_INSERT_SPACES", "true").strip().lower() in _TRUE_VALUES
    return FormattingOptions(tab_size=tab_size, insert_spaces=insert_spaces)


def load_debounce_ms() -> int:
    """Delay used to coalesce rapid document changes before recomputing the overlay."""
    return int(os.getenv("JSON_PILOT_DEBOUNCE_MS", "500"))
