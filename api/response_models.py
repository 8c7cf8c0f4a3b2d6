"""
Pydantic response models for the structure endpoints.

These give FastAPI the type information it needs for accurate OpenAPI
schemas. Every success payload carries success=True; failures are
rendered by the OutreachError handler in api/server.py as ErrorResponse.
"""

from typing import Any

from pydantic import BaseModel, Field

# ==== Envelopes ====


class ErrorResponse(BaseModel):
    """Body of every OutreachError response."""

    success: bool = False
    error: str
    error_code: str
    details: dict[str, Any] = Field(default_factory=dict)


class MutationResponse(BaseModel):
    """Standard mutation result."""

    success: bool = Field(description="Whether the operation succeeded")

    model_config = {"extra": "allow"}


class HealthResponse(BaseModel):
    status: str = Field(description="healthy")
    version: str
    timestamp: str = Field(description="ISO timestamp")


# ==== Identifier changes ====


class IdChange(BaseModel):
    old_id: str
    new_id: str


class InsertResponse(BaseModel):
    success: bool = True
    inserted_id: str
    companies_shifted: int
    new_total_count: int
    changes: list[IdChange] = Field(default_factory=list)


class AddCompanyResponse(BaseModel):
    success: bool = True
    company_id: str
    name: str


class MergeResponse(BaseModel):
    success: bool = True
    survivor_id: str
    victim_id: str
    final_survivor_id: str = Field(description="Survivor id after rows below the victim moved up")
    contacts_updated: int
    contacts_removed: int
    shifted_count: int
    id_changes: dict[str, str] = Field(default_factory=dict)


# ==== Gaps ====


class GapScanBody(BaseModel):
    missing_ids: list[str] = Field(default_factory=list)
    count: int
    min_id: str | None = None
    max_id: str | None = None
    total_companies: int


class GapScanResponse(BaseModel):
    success: bool = True
    gaps: GapScanBody


class GapRepairResponse(BaseModel):
    success: bool = True
    changes: list[IdChange] = Field(default_factory=list)
    total_renumbered: int
    collisions: list[str] = Field(default_factory=list)


# ==== Duplicates ====


class DuplicateScanResponse(BaseModel):
    success: bool = True
    count: int
    duplicates: list[dict[str, Any]] = Field(default_factory=list)


# ==== Reconcile ====


class ReconcileStats(BaseModel):
    added: int = 0
    added_to_database: int = 0
    corrected: int = 0
    duplicates_removed: int = 0


class ReconcileResponse(BaseModel):
    success: bool = True
    preview: bool
    stats: ReconcileStats
    details: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
