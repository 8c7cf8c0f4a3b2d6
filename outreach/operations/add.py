"""Append a company at the next identifier after the current maximum."""

import logging
from dataclasses import dataclass

from outreach.errors import ValidationError
from outreach.sheets.a1 import quote_sheet_name
from outreach.snapshot import read_snapshot

from .base import ApplyRunner, CompanyPayload, OperationContext, record_audit

logger = logging.getLogger(__name__)


@dataclass
class AddResult:
    company_id: str
    name: str

    def to_dict(self) -> dict:
        return {"company_id": self.company_id, "name": self.name}


def add_company(ctx: OperationContext, payload: CompanyPayload) -> AddResult:
    clean = payload.sanitized()
    if not clean.discipline:
        raise ValidationError("Discipline is required", details={"field": "discipline"})

    snapshot = read_snapshot(ctx.store, ctx.config, ctx.codec)
    number = max(snapshot.occupied(), default=0) + 1
    if number > ctx.codec.max_value:
        raise ValidationError("Identifier space is full", details={"max_id": ctx.codec.format(ctx.codec.max_value)})
    company_id = ctx.codec.format(number)
    logger.info(f"Creating new company with ID: {company_id}")

    cfg = ctx.config
    runner = ApplyRunner("add_company", {"company_id": company_id, "name": clean.name})
    with ctx.invalidating(everything=True):
        runner.step(
            "append registry row",
            ctx.store.append_rows,
            cfg.registry_spreadsheet_id,
            f"{quote_sheet_name(snapshot.registry.sheet_name)}!A:N",
            [clean.registry_row(company_id)],
        )
        runner.step(
            "append tracker row",
            ctx.store.append_rows,
            cfg.tracker_spreadsheet_id,
            f"{quote_sheet_name(snapshot.tracker.sheet_name)}!A:N",
            [clean.tracker_row(company_id)],
        )

    record_audit(ctx, "ADD_COMPANY", f"Added {clean.name} as {company_id}", clean.to_dict())
    return AddResult(company_id=company_id, name=clean.name)
