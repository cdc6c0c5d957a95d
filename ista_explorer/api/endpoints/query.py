from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from ista_explorer.api.deps import controller_dep
from ista_explorer.core import schemas
from ista_explorer.core.queries import SAMPLE_QUERIES
from ista_explorer.core.query.normalize import DEFAULT_PAGE_SIZE, PAGE_SIZE_OPTIONS

router = APIRouter(prefix="/query", tags=["Query"])


@router.post("", response_model=schemas.ControllerState)
async def submit_query(payload: schemas.QueryRequest, controller: controller_dep):
    """
    Run an ad-hoc read-only query.

    Rejections, failures and empty results are not HTTP errors: they are
    reported in `outcome` and in the notifications feed.
    """
    await controller.submit(payload.text)
    return controller.snapshot(page=0, page_size=DEFAULT_PAGE_SIZE)


@router.get("/state", response_model=schemas.ControllerState)
async def get_state(
    controller: controller_dep,
    page: int = Query(0, ge=0),
    page_size: Optional[int] = None,
):
    """Current query state. Pass page_size to get one page of rows."""
    if page_size is not None and page_size not in PAGE_SIZE_OPTIONS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"page_size must be one of {list(PAGE_SIZE_OPTIONS)}",
        )
    return controller.snapshot(page=page, page_size=page_size)


@router.get("/samples", response_model=List[schemas.SampleQuery])
async def get_samples():
    return SAMPLE_QUERIES


@router.get("/notifications", response_model=List[schemas.Notification])
async def get_notifications(controller: controller_dep):
    """Most recent notifications, oldest first."""
    return list(controller.notifications)
