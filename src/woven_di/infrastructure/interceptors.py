import logging
import time
from typing import Optional

from woven_di.application.interception import Invocation
from woven_di.domain import IInterceptor


class LoggingInterceptor(IInterceptor):
    """Interceptor that logs method calls, their duration and their failures."""

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.DEBUG) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.level = level

    def intercept(self, invocation: Invocation) -> None:
        signature = f"{type(invocation.target).__name__}.{invocation.method_name}"
        self.logger.log(self.level, "Calling %s", signature)
        started = time.perf_counter()
        try:
            invocation.proceed()
        except Exception as exc:
            self.logger.error("Error in %s: %s", signature, exc)
            raise
        self.logger.log(self.level, "Completed %s in %.3fs", signature, time.perf_counter() - started)
