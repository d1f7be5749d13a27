"""Process entry point for the weekly event announcer."""
import argparse
import json
import logging
import signal
import threading
from typing import List, Optional

from announcer.config import AnnouncerConfig
from announcer.service import AnnouncerService


# Attributes every LogRecord carries; anything else came from `extra=`
_RESERVED_ATTRS = set(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {'message', 'asctime'}


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON, including any `extra` fields."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def main(argv: Optional[List[str]] = None) -> int:
    """
    Start the announcer and block until SIGINT or SIGTERM.

    Args:
        argv: Command-line arguments (default: sys.argv)

    Returns:
        Process exit code
    """
    parser = argparse.ArgumentParser(description="Weekly event announcer")
    parser.add_argument(
        '--announce-now',
        metavar='CHANNEL_ID',
        help="Send this week's announcement to one channel and exit"
    )
    args = parser.parse_args(argv)

    config = AnnouncerConfig.from_env()
    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    service = AnnouncerService(config)

    if args.announce_now:
        result = service.announce_now(args.announce_now).result()
        service.stop()
        if result is None:
            logger.info("Nothing was announced")
            return 0
        return 0 if result.failed == 0 else 1

    stopped = threading.Event()

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}")
        stopped.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    service.start()
    stopped.wait()
    service.stop()
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
