"""
Structure API Router: REST endpoints for structural operations.

Endpoints:
- POST /api/companies/insert: insert a company at a chosen id
- POST /api/companies: append a company at the next id
- GET /api/duplicates/scan: tracker rows sharing a name
- POST /api/duplicates/merge: merge victim into survivor
- GET /api/id-gaps/scan: missing ids in the registry
- POST /api/id-gaps/fix: renumber registry ids densely
- POST /api/sync-database: reconcile tracker with registry
- POST /api/clear-cache: drop cached snapshots
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from api.response_models import (
    AddCompanyResponse,
    DuplicateScanResponse,
    GapRepairResponse,
    GapScanResponse,
    InsertResponse,
    MergeResponse,
    MutationResponse,
    ReconcileResponse,
)
from outreach.operations import CompanyPayload, MergeStrategy
from outreach.service import OutreachService, get_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["structure"])


# Pydantic models for API
class CompanyData(BaseModel):
    """New company fields; text is sanitised server-side."""

    name: str = Field(..., description="Company name")
    discipline: str = ""
    priority: str = ""
    sponsorship_tier: str = ""
    contact_name: str = ""
    role: str = ""
    email: str = ""
    phone: str = ""
    linkedin: str = ""
    remarks: str = ""
    assigned_to: str = ""

    def to_payload(self) -> CompanyPayload:
        return CompanyPayload(**self.model_dump())


class InsertRequest(BaseModel):
    insert_at_id: str = Field(..., description="Target id, e.g. ME-0003")
    company: CompanyData


class MergeStrategyModel(BaseModel):
    name: str | None = None
    status: str | None = None
    assigned_to: str | None = None
    remarks: str | None = None


class MergeRequest(BaseModel):
    survivor_id: str = Field(..., description="Company that remains")
    victim_id: str = Field(..., description="Company merged away")
    strategy: MergeStrategyModel = Field(default_factory=MergeStrategyModel)
    retain_contact_keys: list[str] | None = Field(
        default=None, description="Selection keys from /duplicates/scan; omit to keep every contact"
    )


class SyncRequest(BaseModel):
    preview: bool = False


# Endpoints


@router.post("/companies/insert", response_model=InsertResponse)
def insert_company(request: InsertRequest, service: OutreachService = Depends(get_service)):
    """Insert a company at insert_at_id, shifting every later id up by one."""
    result = service.insert_company(request.insert_at_id, request.company.to_payload())
    return {"success": True, **result.to_dict()}


@router.post("/companies", response_model=AddCompanyResponse)
def add_company(request: CompanyData, service: OutreachService = Depends(get_service)):
    result = service.add_company(request.to_payload())
    return {"success": True, **result.to_dict()}


@router.get("/duplicates/scan", response_model=DuplicateScanResponse)
def scan_duplicates(service: OutreachService = Depends(get_service)):
    groups = service.scan_duplicates()
    return {"success": True, "count": len(groups), "duplicates": [g.to_dict() for g in groups]}


@router.post("/duplicates/merge", response_model=MergeResponse)
def merge_companies(request: MergeRequest, service: OutreachService = Depends(get_service)):
    """Merge victim into survivor; the victim's tracker row is deleted and later ids move up."""
    result = service.merge_companies(
        request.survivor_id,
        request.victim_id,
        MergeStrategy(**request.strategy.model_dump()),
        request.retain_contact_keys,
    )
    return {"success": True, **result.to_dict()}


@router.get("/id-gaps/scan", response_model=GapScanResponse)
def scan_id_gaps(service: OutreachService = Depends(get_service)):
    return {"success": True, "gaps": service.scan_gaps().to_dict()}


@router.post("/id-gaps/fix", response_model=GapRepairResponse)
def fix_id_gaps(service: OutreachService = Depends(get_service)):
    result = service.repair_gaps()
    return {"success": True, **result.to_dict()}


@router.post("/sync-database", response_model=ReconcileResponse)
def sync_database(request: SyncRequest | None = None, service: OutreachService = Depends(get_service)):
    preview = request.preview if request is not None else False
    result = service.reconcile(preview=preview)
    return {"success": True, **result.to_dict()}


@router.post("/clear-cache", response_model=MutationResponse)
def clear_cache(service: OutreachService = Depends(get_service)):
    service.clear_cache()
    return {"success": True, "message": "Cache cleared successfully", "timestamp": datetime.now().isoformat()}
