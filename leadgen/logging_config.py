"""
Logging setup for the web app and the cron script.

LOG_FORMAT picks human-readable text or one JSON object per line; LOG_LEVEL
defaults to INFO. Pipeline log calls may pass lead context through `extra`
(see LEAD_CONTEXT_FIELDS) and both formats surface it.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone

# Keys accepted in `extra=` by pipeline loggers
LEAD_CONTEXT_FIELDS = ('lead_url', 'state', 'provider')

# HTTP, SDK and ORM chatter that drowns pipeline output at INFO
_NOISY_LOGGERS = [
    'urllib3',
    'openai',
    'anthropic',
    'httpcore',
    'httpx',
    'sqlalchemy.engine',
]


def _lead_context(record) -> dict:
    return {key: getattr(record, key) for key in LEAD_CONTEXT_FIELDS if getattr(record, key, None)}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, lead context as top-level keys."""

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        entry.update(_lead_context(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class LeadTextFormatter(logging.Formatter):
    """Plain text with a trailing `key=value` block when lead context is attached."""

    def __init__(self):
        super().__init__('[%(asctime)s] %(levelname)s %(name)s: %(message)s', datefmt='%Y-%m-%d %H:%M:%S')

    def format(self, record):
        line = super().format(record)
        context = _lead_context(record)
        if context:
            line += ' [' + ' '.join(f'{k}={v}' for k, v in context.items()) + ']'
        return line


def _env_level() -> int:
    level = logging.getLevelName(os.getenv('LOG_LEVEL', 'INFO').upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(app=None):
    """
    Replace the root handler with one stderr handler; safe to call repeatedly.

    When a Flask app is passed its logger follows the same level.
    """
    level = _env_level()
    use_json = os.getenv('LOG_FORMAT', 'text').lower() == 'json'

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if use_json else LeadTextFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if app is not None:
        app.logger.setLevel(level)
