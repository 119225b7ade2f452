"""Entity Type Config API Router - administrator endpoints.

Requires the ADMIN role.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth.dependencies import Operator, require_admin
from ..database import get_db
from .schemas import (
    EntityTypeConfigListResponse,
    EntityTypeConfigResponse,
    EntityTypeConfigUpsert,
)
from .service import EntityTypeConfigService

router = APIRouter(prefix="/entity-type-configs", tags=["entity_type_configs"])


@router.get("", response_model=EntityTypeConfigListResponse)
def list_configs(
    include_inactive: bool = Query(True),
    admin: Operator = Depends(require_admin),
    db: Session = Depends(get_db),
) -> EntityTypeConfigListResponse:
    records = EntityTypeConfigService(db).list_configs(include_inactive=include_inactive)
    return EntityTypeConfigListResponse(
        items=[EntityTypeConfigResponse.model_validate(r) for r in records],
        total=len(records),
    )


@router.get("/{type_id}", response_model=EntityTypeConfigResponse)
def get_config(
    type_id: str,
    admin: Operator = Depends(require_admin),
    db: Session = Depends(get_db),
) -> EntityTypeConfigResponse:
    record = EntityTypeConfigService(db).get_config(type_id)
    return EntityTypeConfigResponse.model_validate(record)


@router.put("/{type_id}", response_model=EntityTypeConfigResponse)
def upsert_config(
    type_id: str,
    body: EntityTypeConfigUpsert,
    admin: Operator = Depends(require_admin),
    db: Session = Depends(get_db),
) -> EntityTypeConfigResponse:
    """Create or replace a configuration.

    **Errors:** 400 VALIDATION_ERROR when a field path is malformed
    """
    record = EntityTypeConfigService(db).upsert_config(type_id, body.model_dump(), actor=admin.id)
    return EntityTypeConfigResponse.model_validate(record)


@router.delete("/{type_id}", response_model=EntityTypeConfigResponse, status_code=status.HTTP_200_OK)
def deactivate_config(
    type_id: str,
    admin: Operator = Depends(require_admin),
    db: Session = Depends(get_db),
) -> EntityTypeConfigResponse:
    """Deactivate a configuration; existing links stop working on the portal."""
    record = EntityTypeConfigService(db).deactivate_config(type_id, actor=admin.id)
    return EntityTypeConfigResponse.model_validate(record)
