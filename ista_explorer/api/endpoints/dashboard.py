from typing import List

from fastapi import APIRouter, HTTPException, status

from ista_explorer.api.deps import fetcher_dep
from ista_explorer.core import schemas

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=List[schemas.SlotSnapshot])
async def get_dashboard(fetcher: fetcher_dep):
    """All dashboard slots, loaded or not."""
    return fetcher.snapshots()


@router.get("/{slot_name}", response_model=schemas.SlotSnapshot)
async def get_slot(slot_name: str, fetcher: fetcher_dep):
    slot = fetcher.get(slot_name)
    if slot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Dashboard slot not found"
        )
    return slot.snapshot()
