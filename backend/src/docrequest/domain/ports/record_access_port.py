"""Record Access Port - Domain interface to originating records.

The core never queries originating entities directly. Every read goes through
fetch(), which returns a generic key-value record so the recipient resolver
stays independent of the storage technology.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Sequence


class RecordAccessPort(ABC):
    """Port interface for reading originating-entity records.

    Record shape:
        A dict of field name -> value. A relationship hop named in a requested
        field path appears as a nested dict, or None when the reference is
        empty. Example for paths ["contact.email", "name"]:

            {"id": "opp-1", "name": "Renewal", "contact": {"email": "a@b.c"}}
    """

    @abstractmethod
    def fetch(
        self,
        entity_type: str,
        entity_id: str,
        field_paths: Sequence[str],
    ) -> Dict[str, Any]:
        """Fetch one record with every hop of field_paths eagerly included.

        All paths are served by a single call; implementations batch the
        underlying reads.

        Args:
            entity_type: Originating entity type (table/object name)
            entity_id: Originating entity identifier
            field_paths: Dot-separated paths whose hops must be included

        Returns:
            Dict[str, Any]: The record

        Raises:
            RecordNotFoundError: If the record does not exist
            InvalidFieldPathError: If a hop cannot be followed for this entity type
        """
        pass
