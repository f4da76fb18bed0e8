"""Shared mixins for components that report progress."""

import logging


class LoggerMixin:
    """Provides a per-component logger and verbose-aware info logging.

    Messages logged with ``_log_verbose_info`` are emitted at INFO level when
    verbose output is enabled and at DEBUG level otherwise.
    """

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose
        self.logger = logging.getLogger(
            f'{self.__class__.__module__}.{self.__class__.__name__}'
        )

    def _log_verbose_info(self, msg: str, *args: object) -> None:
        if self.verbose:
            self.logger.info(msg, *args)
        else:
            self.logger.debug(msg, *args)
