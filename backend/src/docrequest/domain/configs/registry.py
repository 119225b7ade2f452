"""Process-scoped configuration registry

Lookups hit the entity_type_config table once per type and are then served
from memory until invalidate(type_id) is called by an administrative update.
The cache initializes lazily on first lookup.
"""

import logging
import threading
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ...models.entity_type_config import EntityTypeConfigRecord
from ..errors import NotConfiguredError
from .entity_type_config import EntityTypeConfig

logger = logging.getLogger(__name__)


class ConfigRegistry:
    """Read-mostly cache of EntityTypeConfig keyed by type_id.

    Inactive rows are cached like active ones; get_config hides them so an
    inactive type is indistinguishable from an absent one to callers.
    """

    def __init__(self):
        self._cache: Dict[str, EntityTypeConfig] = {}
        self._lock = threading.Lock()

    def get_config(self, db: Session, type_id: str) -> Optional[EntityTypeConfig]:
        """Return the active configuration for type_id, or None if not configured.

        Callers must treat None as a hard stop, never fall back to defaults.
        """
        config = self._lookup(db, type_id)
        if config is None or not config.is_active:
            return None
        return config

    def require_config(self, db: Session, type_id: str) -> EntityTypeConfig:
        """Like get_config but raises NotConfiguredError."""
        config = self.get_config(db, type_id)
        if config is None:
            raise NotConfiguredError(
                f"Document requests are not configured for entity type '{type_id}'",
                details={"type_id": type_id},
            )
        return config

    def list_active_types(self, db: Session) -> List[EntityTypeConfig]:
        """Return every active configuration ordered by type_id."""
        records = db.query(EntityTypeConfigRecord).filter(
            EntityTypeConfigRecord.is_active.is_(True)
        ).order_by(EntityTypeConfigRecord.type_id).all()

        configs = [EntityTypeConfig.from_record(record) for record in records]
        with self._lock:
            for config in configs:
                self._cache.setdefault(config.type_id, config)
        return configs

    def invalidate(self, type_id: str) -> None:
        """Drop one type from the cache after an administrative update."""
        with self._lock:
            self._cache.pop(type_id, None)
        logger.info("Config cache invalidated", extra={"type_id": type_id})

    def invalidate_all(self) -> None:
        with self._lock:
            self._cache.clear()

    def _lookup(self, db: Session, type_id: str) -> Optional[EntityTypeConfig]:
        if not type_id:
            return None

        with self._lock:
            cached = self._cache.get(type_id)
        if cached is not None:
            return cached

        record = db.get(EntityTypeConfigRecord, type_id)
        if record is None:
            # Absent types are not cached so a later create is visible
            return None

        config = EntityTypeConfig.from_record(record)
        with self._lock:
            # First writer wins; cached values are never replaced in place
            config = self._cache.setdefault(type_id, config)
        return config


# Module-level registry instance
config_registry = ConfigRegistry()
