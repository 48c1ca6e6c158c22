"""
Brag List API Routes.

- POST   /api/brag/generate              - Generate (and save) a batch from completed tasks
- POST   /api/brag/single                - Generate one entry for one task
- POST   /api/brag/accept                - Accept a batch entry (by index) or a standalone entry
- PATCH  /api/brag/generated/{index}     - Partially update a batch entry
- DELETE /api/brag/generated/{index}     - Remove a batch entry
- DELETE /api/brag/ledger/{index}        - Remove a ledger block by position
- DELETE /api/brag/ledger/id/{entry_id}  - Remove a ledger block by id
- GET    /api/brag                       - Ledger text, parsed ledger blocks and current batch
- POST   /api/brag/value-statement       - One-sentence value statement for a task

NotFound maps to 404 so clients refresh instead of retrying; persistence
failures map to 500 with the failing operation in the message.
"""

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, model_validator

from brag.common.errors import NotFound, PersistenceFailure
from brag.achievements.schemas import SingleTaskInput
from brag.achievements.types import AchievementEntry
from brag.services.brag_service import BragService

from ..config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/brag", tags=["brag"])


@lru_cache()
def get_brag_service() -> BragService:
    """Process-wide service built from settings; overridden in tests."""
    settings = get_settings()
    return BragService.from_config(offline=settings.brag_offline, data_dir=settings.brag_data_dir)


# =============================================================================
# Pydantic Models
# =============================================================================


class GenerateRequest(BaseModel):
    """Request body for batch generation."""

    tasks: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Completed task records (title, steps, completed_at, elapsed_minutes, ...)",
    )
    mode: str = Field(default="ic", description="Seniority mode: ic, senior, lead")
    wording: str = Field(default="safe", description="Wording mode: safe, ambitious")


class AcceptRequest(BaseModel):
    """Request body for accepting an entry."""

    index: Optional[int] = Field(default=None, ge=0, description="Index of the entry in the current batch")
    entry: Optional[Dict[str, Any]] = Field(default=None, description="Standalone entry to append")

    @model_validator(mode="after")
    def require_index_or_entry(self) -> "AcceptRequest":
        if self.index is None and self.entry is None:
            raise ValueError("Either index or entry is required")
        return self


class ValueStatementRequest(BaseModel):
    """Request body for a value statement."""

    task: str = Field(default="", description="Completed task title")


class DeleteResponse(BaseModel):
    """Response for delete operations."""

    success: bool
    message: str = ""
    removed: Dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Helpers
# =============================================================================


def _to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, PersistenceFailure):
        logger.error(f"Persistence failure during {e.operation}: {e}")
        return HTTPException(
            status_code=500,
            detail=f"{e}. Check that the data directory exists and is writable.",
        )
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    logger.exception(f"Unexpected error: {e}")
    return HTTPException(status_code=500, detail=str(e))


# =============================================================================
# Routes
# =============================================================================


@router.post("/generate", summary="Generate a brag list from completed tasks")
def generate_brag_list(
    request: GenerateRequest,
    service: BragService = Depends(get_brag_service),
) -> Dict[str, Any]:
    """
    Generate achievement entries and save them as the current batch.

    Always returns entries (model-backed or fallback); vocabulary and outcome
    warnings are returned alongside, and a failed save is reported in
    persistence_error instead of discarding the batch.
    """
    logger.info(f"Generating brag list for {len(request.tasks)} task(s)")
    try:
        result = service.generate_batch(request.tasks, request.mode, request.wording)
    except ValueError as e:
        raise _to_http_error(e)
    return result.to_dict()


@router.post("/single", summary="Generate a brag entry for one task")
def generate_single_brag(
    request: SingleTaskInput,
    service: BragService = Depends(get_brag_service),
) -> Dict[str, Any]:
    return service.generate_single(request).to_dict()


@router.post("/accept", summary="Accept an entry into the brag list")
def accept_entry(
    request: AcceptRequest,
    service: BragService = Depends(get_brag_service),
) -> Dict[str, Any]:
    """
    Append an entry to the ledger.

    With an index, the batch entry is also marked accepted; accepting it again
    is a no-op success. Both write outcomes are reported independently.
    """
    try:
        if request.index is not None:
            result = service.accept(index=request.index)
        else:
            result = service.accept(entry=AchievementEntry.from_dict(request.entry))
    except (NotFound, PersistenceFailure, ValueError) as e:
        raise _to_http_error(e)
    return result.to_dict()


@router.patch("/generated/{index}", summary="Update a generated entry")
def update_generated_entry(
    index: int,
    update: Dict[str, Any],
    service: BragService = Depends(get_brag_service),
) -> Dict[str, Any]:
    """
    Merge the provided fields over the entry at index.

    Absent fields are kept; null clears overall_impact/ledger_entry_id and is
    rejected for required fields.
    """
    try:
        entry = service.update_generated(index, update)
    except (NotFound, PersistenceFailure, ValueError) as e:
        raise _to_http_error(e)
    return {"success": True, "entry": entry.to_dict()}


@router.delete("/generated/{index}", response_model=DeleteResponse, summary="Delete a generated entry")
def delete_generated_entry(
    index: int,
    service: BragService = Depends(get_brag_service),
) -> DeleteResponse:
    try:
        removed = service.delete_generated(index)
    except (NotFound, PersistenceFailure) as e:
        raise _to_http_error(e)
    return DeleteResponse(success=True, message=f"Deleted '{removed.title}'", removed=removed.to_dict())


@router.delete("/ledger/{index}", response_model=DeleteResponse, summary="Delete a brag list entry by position")
def delete_ledger_entry_at(
    index: int,
    service: BragService = Depends(get_brag_service),
) -> DeleteResponse:
    try:
        removed = service.delete_ledger(index)
    except (NotFound, PersistenceFailure) as e:
        raise _to_http_error(e)
    return DeleteResponse(success=True, message=f"Deleted '{removed.title}'", removed=removed.to_dict())


@router.delete("/ledger/id/{entry_id}", response_model=DeleteResponse, summary="Delete a brag list entry by id")
def delete_ledger_entry(
    entry_id: str,
    service: BragService = Depends(get_brag_service),
) -> DeleteResponse:
    try:
        removed = service.delete_ledger_by_id(entry_id)
    except (NotFound, PersistenceFailure) as e:
        raise _to_http_error(e)
    return DeleteResponse(success=True, message=f"Deleted '{removed.title}'", removed=removed.to_dict())


@router.get("", summary="Read the brag list and the current batch")
def read_brag_list(service: BragService = Depends(get_brag_service)) -> Dict[str, Any]:
    return service.read_all().to_dict()


@router.post("/value-statement", summary="Generate a value statement for a task")
def value_statement(
    request: ValueStatementRequest,
    service: BragService = Depends(get_brag_service),
) -> Dict[str, Any]:
    return service.value_statement(request.task).to_dict()
