# groupie_tracker/catalog/best_effort.py

import logging
from typing import Callable, Optional, TypeVar

from ..utils.errors import GroupieTrackerError

T = TypeVar('T')


def best_effort(logger: logging.Logger, label: str, fn: Callable[..., T], *args, **kwargs) -> Optional[T]:
    """Run an enrichment call; a failure is logged and becomes None instead of an exception"""
    try:
        return fn(*args, **kwargs)
    except GroupieTrackerError as e:
        logger.warning(f"{label} unavailable: {str(e)}")
        return None
