"""Configuration registry - per-entity-type recipient paths and upload limits"""

from .entity_type_config import EntityTypeConfig
from .registry import ConfigRegistry, config_registry

__all__ = [
    "EntityTypeConfig",
    "ConfigRegistry",
    "config_registry",
]
