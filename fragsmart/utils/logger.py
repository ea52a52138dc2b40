"""
Logging utilities for fragsmart.

Provides logger setup with optional duplicate suppression and
configurable output streams. Worker tasks log from several threads, so
the thread name is part of every record.
"""

import logging
import os
import re
import sys


class LogOnceFilter(logging.Filter):
    """
    Logging filter that prevents duplicate messages from being logged.

    Maintains a set of previously logged messages and filters out any
    message that has already been logged (excluding timestamps).
    """

    def __init__(self):
        super().__init__()
        self.logged_messages = set()

    def filter(self, record):
        """
        Filter duplicate log records.

        Args:
            record (logging.LogRecord): The log record to evaluate.

        Returns:
            bool: True if message should be logged, False if duplicate.
        """
        message = self.remove_timestamp(record.getMessage())
        if message in self.logged_messages:
            return False
        self.logged_messages.add(message)
        return True

    @staticmethod
    def remove_timestamp(message):
        """Strip a leading 'YYYY-MM-DD HH:MM:SS,mmm - ' timestamp."""
        return re.sub(
            r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2},\d{3} - ", "", message
        )


def create_logger(
    debug=False,
    folder=".",
    logfile=None,
    errfile=None,
    stream=True,
    log_once=False,
):
    """
    Create and configure the root logger.

    Stream behavior:
    - Errors are always sent to stderr.
    - If `stream=True`, all messages are also sent to stdout.

    Args:
        debug (bool, optional): Enable debug level logging. Defaults to False.
        folder (str, optional): Directory for log files. Defaults to ".".
        logfile (str, optional): Name of the info/debug log file.
        errfile (str, optional): Name of the warning/error log file.
        stream (bool, optional): Enable console output to stdout.
            Defaults to True.
        log_once (bool, optional): Suppress repeated identical messages.
            Defaults to False.

    Returns:
        logging.Logger: Configured root logger instance.
    """
    logger = logging.getLogger()

    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)
    logger.handlers = []
    logger.filters = []
    formatter = logging.Formatter(
        "{asctime} - {levelname:6s} - [{name}] ({threadName}) {message}",
        style="{",
    )

    # Stream errors always
    err_stream_handler = logging.StreamHandler(stream=sys.stderr)
    err_stream_handler.setLevel(logging.ERROR)
    err_stream_handler.setFormatter(formatter)
    logger.addHandler(err_stream_handler)

    if stream:
        stream_handler = logging.StreamHandler(stream=sys.stdout)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    if logfile:
        infofile_handler = logging.FileHandler(
            filename=os.path.join(folder, logfile)
        )
        infofile_handler.setLevel(level)
        infofile_handler.setFormatter(formatter)
        logger.addHandler(infofile_handler)

    if errfile:
        errfile_handler = logging.FileHandler(
            filename=os.path.join(folder, errfile)
        )
        errfile_handler.setLevel(logging.WARNING)
        errfile_handler.setFormatter(formatter)
        logger.addHandler(errfile_handler)

    if log_once:
        # logger filters do not apply to records of child loggers
        for handler in logger.handlers:
            handler.addFilter(LogOnceFilter())

    return logger
