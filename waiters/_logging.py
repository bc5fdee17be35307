"""Forward stdlib logging records to the Pulumi engine log."""

import logging

import pulumi

ROOT_LOGGER = "waiters"


class PulumiLogHandler(logging.Handler):
    """
    Route records to ``pulumi.log`` at the matching severity.

    Dynamic providers run outside the program process, so plain stderr
    output is easy to miss in ``pulumi up``. Without an engine attached,
    ``pulumi.log`` itself falls back to stderr.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            if record.levelno >= logging.ERROR:
                pulumi.log.error(msg)
            elif record.levelno >= logging.WARNING:
                pulumi.log.warn(msg)
            elif record.levelno >= logging.INFO:
                pulumi.log.info(msg)
            else:
                pulumi.log.debug(msg)
        except Exception:
            self.handleError(record)


def install(level: int = logging.INFO) -> logging.Logger:
    """Attach a single PulumiLogHandler to the package logger. Idempotent."""
    log = logging.getLogger(ROOT_LOGGER)
    if not any(isinstance(h, PulumiLogHandler) for h in log.handlers):
        log.addHandler(PulumiLogHandler())
    log.setLevel(level)
    return log
