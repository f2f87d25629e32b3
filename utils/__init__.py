"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, to_utc, parse_iso, epoch_millis
from utils.session_context import (
    get_current_session_id,
    set_current_session_id,
    clear_current_session_id,
    checkout_session,
)
from utils.logging_config import setup_logging
