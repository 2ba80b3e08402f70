"""Status catalog routes."""

from __future__ import annotations

from fastapi import APIRouter, Query

from orderflow.lifecycle.actions import available_actions
from orderflow.lifecycle.catalog import get_catalog
from orderflow.models import Dimension, EntityKind
from orderflow.web.models import StatusCatalogResponse, StatusInfoResponse

router = APIRouter(tags=["Catalog"])


@router.get("/statuses/{kind}", response_model=StatusCatalogResponse)
async def get_statuses(kind: EntityKind, dimension: Dimension = Query(Dimension.OPERATIONAL)):
    """Labels, successors and display hints for every status of an entity kind."""
    catalog = get_catalog(kind, dimension)
    return StatusCatalogResponse(
        kind=kind.value,
        dimension=dimension.value,
        initial=catalog.initial,
        statuses=[
            StatusInfoResponse(
                status=status,
                label=info.label,
                allowed_next=sorted(info.allowed_next),
                is_terminal=info.is_terminal,
                color=info.color,
                icon=info.icon,
            )
            for status, info in catalog.items()
        ],
        actions=[action.value for action in available_actions(kind)],
    )
