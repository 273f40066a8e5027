"""
Logging for ExamDesk.

Everything logs under the ``examdesk`` logger tree: the Flask app logger is
pointed at the same handlers, and the client library uses
``examdesk.client``. Console output always; a rotating file and JSON lines
are switched on from configuration.
"""

import json
import logging
import logging.handlers
import os
from typing import Optional

ROOT_LOGGER = 'examdesk'
LOG_FILENAME = 'examdesk.log'
TEXT_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'time': self.formatTime(record, DATE_FORMAT),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def _default_log_dir() -> str:
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    return os.path.join(project_root, 'logs')


def setup_logging(
    app=None,
    log_level: str = 'INFO',
    log_dir: Optional[str] = None,
    json_format: bool = False,
    to_file: bool = True,
) -> logging.Logger:
    """
    (Re)build the handlers of the ``examdesk`` logger.

    Safe to call once per app instance; handlers are replaced, not stacked.
    """
    level = logging.getLevelName(str(log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter = JsonLineFormatter() if json_format else logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler()]
    if to_file:
        directory = log_dir or _default_log_dir()
        os.makedirs(directory, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            os.path.join(directory, LOG_FILENAME),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8',
        ))
    for handler in handlers:
        handler.setFormatter(formatter)

    logger = logging.getLogger(ROOT_LOGGER)
    targets = [logger] + ([app.logger] if app is not None else [])
    for target in targets:
        for old in list(target.handlers):
            target.removeHandler(old)
            old.close()
        for handler in handlers:
            target.addHandler(handler)
        target.setLevel(level)
        target.propagate = False

    if app is not None:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)

    logger.info(f"Logging ready: level={logging.getLevelName(level)}, file={'on' if to_file else 'off'}, "
                f"json={'on' if json_format else 'off'}")
    return logger
