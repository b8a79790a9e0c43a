import logging
import time
from functools import wraps
from typing import Callable

from sqlalchemy.orm import Session

from marketplace.core.exceptions import MarketplaceError


class BaseStore:
    """
    Base class for the stores.

    Holds the injected session and a logger named after the concrete class.
    Stores are built per request and never shared between threads.
    """

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)

    @staticmethod
    def log_performance(func: Callable) -> Callable:
        """
        Log how long a store method took.

        Expected failures (MarketplaceError) are logged at warning level,
        anything else at error level with the traceback. Both are re-raised.
        """

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            start_time = time.perf_counter()
            method_name = f"{self.__class__.__name__}.{func.__name__}"

            try:
                self.logger.debug(f"{method_name} started")
                result = func(self, *args, **kwargs)
            except MarketplaceError as e:
                elapsed_time = (time.perf_counter() - start_time) * 1000
                self.logger.warning(f"{method_name} failed with '{e.code}' in {elapsed_time:.2f}ms: {e.message}")
                raise
            except Exception as e:
                elapsed_time = (time.perf_counter() - start_time) * 1000
                self.logger.error(
                    f"{method_name} raised exception after {elapsed_time:.2f}ms: {str(e)}",
                    exc_info=True,
                )
                raise

            elapsed_time = (time.perf_counter() - start_time) * 1000
            self.logger.info(f"{method_name} completed in {elapsed_time:.2f}ms")
            return result

        return wrapper
