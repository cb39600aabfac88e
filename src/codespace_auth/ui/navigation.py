"""Navigation side effects of the auth screen."""

import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


class Navigator:
    """Records navigation requests; the web layer turns the last one into a redirect."""

    def __init__(self, location: Optional[str] = None) -> None:
        self.history: List[str] = [location] if location else []

    @property
    def current(self) -> Optional[str]:
        return self.history[-1] if self.history else None

    def navigate(self, path: str) -> None:
        logger.debug("Navigating to %s", path)
        self.history.append(path)

    def __call__(self, path: str) -> None:
        self.navigate(path)
