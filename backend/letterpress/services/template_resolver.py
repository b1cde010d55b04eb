"""
Template resolution: find the active template for a product or create the
default one.
"""

import logging
import threading
from typing import Dict, Optional, Tuple

from letterpress.models.letter import LetterTemplate

logger = logging.getLogger(__name__)


class TemplateResolver:
    """
    Resolves (shop, product_id) to a LetterTemplate.

    The read-then-create sequence runs under a lock per (shop, product_id),
    so concurrent first orders handled by this process create a single
    default. Nothing is cached between calls.
    """

    def __init__(self, store):
        self.store = store
        self._locks: Dict[Tuple[str, Optional[str]], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, shop: str, product_id: Optional[str]) -> threading.Lock:
        key = (shop, product_id)
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def resolve(self, shop: str, product_id: Optional[str], product_title: str) -> LetterTemplate:
        template = self.store.find_active(shop, product_id)
        if template is not None:
            return template

        with self._lock_for(shop, product_id):
            # Another thread may have created it while we waited
            template = self.store.find_active(shop, product_id)
            if template is not None:
                return template

            logger.info(
                f"No active template for shop={shop!r} product_id={product_id!r}; creating default"
            )
            return self.store.create_default(shop, product_id, product_title)
