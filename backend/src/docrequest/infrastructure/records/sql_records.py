"""SQL Record Access - Implementation of RecordAccessPort over reflected tables.

Originating entities live in ordinary tables of the same database. A
relationship hop named "contact" is followed through the "contact_id" column
of the current table. The target table comes from the column's foreign key
when one is declared, otherwise from a table named after the hop.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import logging
from typing import Any, Dict, Optional, Sequence

from sqlalchemy import MetaData, Table, select
from sqlalchemy.exc import NoSuchTableError
from sqlalchemy.orm import Session

from ...domain.errors import InvalidFieldPathError, RecordNotFoundError
from ...domain.ports.record_access_port import RecordAccessPort
from ...domain.recipients.field_path import parse_field_path

logger = logging.getLogger(__name__)


class SqlRecordAccess(RecordAccessPort):
    """Serve fetch() from arbitrary tables using SQLAlchemy reflection.

    Hops shared by several paths are loaded once, so a fetch costs one query
    per distinct relationship in the path tree.
    """

    def __init__(self, db: Session, id_column: str = "id"):
        self.db = db
        self.id_column = id_column
        self._metadata = MetaData()

    def fetch(
        self,
        entity_type: str,
        entity_id: str,
        field_paths: Sequence[str],
    ) -> Dict[str, Any]:
        try:
            table = self._table(entity_type)
        except NoSuchTableError:
            raise RecordNotFoundError(
                f"Unknown entity type '{entity_type}'",
                details={"entity_type": entity_type},
            )

        record = self._load_row(table, entity_id)
        if record is None:
            raise RecordNotFoundError(
                f"Record {entity_type}/{entity_id} not found",
                details={"entity_type": entity_type, "entity_id": entity_id},
            )

        tree: Dict[str, Any] = {}
        for raw in field_paths:
            path = parse_field_path(raw)
            node = tree
            for hop in path.hops:
                node = node.setdefault(hop, {})

        self._expand(table, record, tree, field_paths)
        return record

    def _expand(
        self,
        table: Table,
        record: Dict[str, Any],
        tree: Dict[str, Any],
        field_paths: Sequence[str],
    ) -> None:
        for hop, subtree in tree.items():
            column_name = f"{hop}_id"
            if column_name not in table.c:
                raise InvalidFieldPathError(
                    f"Relationship '{hop}' not found on {table.name}",
                    path=_first_path_with(hop, field_paths),
                )

            reference = record.get(column_name)
            if reference is None:
                record[hop] = None
                continue

            target = self._target_table(table, column_name, hop, field_paths)
            related = self._load_row(target, reference)
            if related is not None:
                self._expand(target, related, subtree, field_paths)
            record[hop] = related

    def _target_table(
        self,
        table: Table,
        column_name: str,
        hop: str,
        field_paths: Sequence[str],
    ) -> Table:
        for fk in table.c[column_name].foreign_keys:
            return fk.column.table
        try:
            return self._table(hop)
        except NoSuchTableError:
            raise InvalidFieldPathError(
                f"No table found for relationship '{hop}'",
                path=_first_path_with(hop, field_paths),
            )

    def _table(self, name: str) -> Table:
        if name in self._metadata.tables:
            return self._metadata.tables[name]
        return Table(name, self._metadata, autoload_with=self.db.get_bind())

    def _load_row(self, table: Table, row_id: Any) -> Optional[Dict[str, Any]]:
        if self.id_column not in table.c:
            raise RecordNotFoundError(f"Table {table.name} has no '{self.id_column}' column")
        stmt = select(table).where(table.c[self.id_column] == row_id)
        row = self.db.execute(stmt).mappings().first()
        return dict(row) if row is not None else None


def _first_path_with(hop: str, field_paths: Sequence[str]) -> Optional[str]:
    for raw in field_paths:
        if hop in raw.split("."):
            return raw
    return None
