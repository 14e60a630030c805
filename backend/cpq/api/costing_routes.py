"""
CPQ Costing API Routes

POST /api/cpq/costs/compute         — full cost summary, sale price, position allocation
POST /api/cpq/costs/allocate        — allocate a given sale price across positions
POST /api/cpq/costs/apply-defaults  — seed quote collections from catalog defaults
POST /api/cpq/costs/merge           — upsert submitted collections into stored ones
GET  /api/cpq/costs/defaults        — global parameter defaults in effect
"""
import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from cpq.models.cpq_schema import (
    AllocationRequest,
    CostingRequest,
    DefaultsRequest,
    MergeRequest,
)
from cpq.services.catalog_defaults import apply_catalog_defaults, merge_quote_collections
from cpq.services.costing_engine import CpqCostingEngine
from cpq.services.position_allocator import DEFAULT_MONTHLY_HOURS, build_position_allocations

router = APIRouter(prefix="/api/cpq/costs", tags=["CPQ Costing"])
logger = logging.getLogger("cpq-api")


@lru_cache(maxsize=1)
def get_costing_engine() -> CpqCostingEngine:
    """Shared engine; holds only immutable defaults resolved at first use."""
    return CpqCostingEngine()


# ── Compute ──────────────────────────────────────────────────────────────────

@router.post("/compute")
def compute_quote_costs(
    req: CostingRequest,
    engine: CpqCostingEngine = Depends(get_costing_engine),
):
    """Recompute the full cost summary for a quote snapshot."""
    try:
        return engine.compute(req.model_dump())
    except Exception as e:
        logger.exception("Cost computation failed", extra={"quote_id": req.quote_id})
        raise HTTPException(status_code=500, detail=f"Cost computation failed: {e}")


# ── Allocation ───────────────────────────────────────────────────────────────

@router.post("/allocate")
def allocate_sale_price(
    req: AllocationRequest,
    engine: CpqCostingEngine = Depends(get_costing_engine),
):
    """Split a sale price across positions by payroll weight."""
    hours = req.monthly_hours_standard
    if hours is None:
        hours = engine.default_parameters.get("monthly_hours_standard", DEFAULT_MONTHLY_HOURS)
    positions = [p.model_dump() for p in req.positions]
    return {
        "total_sale_price": req.total_sale_price,
        "allocations": build_position_allocations(positions, req.total_sale_price, hours),
    }


# ── Defaults & merge ─────────────────────────────────────────────────────────

@router.post("/apply-defaults")
def apply_defaults(req: DefaultsRequest):
    """Seed a new quote's collections from the catalog's default entries."""
    data = req.model_dump()
    return apply_catalog_defaults(
        data["catalog"],
        cost_items=data["cost_items"],
        uniforms=data["uniforms"],
        exams=data["exams"],
        meals=data["meals"],
    )


@router.post("/merge")
def merge_collections(req: MergeRequest):
    """Upsert submitted rows (by catalog id / meal type) into the stored rows."""
    return merge_quote_collections(req.existing.model_dump(), req.submitted.model_dump())


@router.get("/defaults")
def get_defaults(engine: CpqCostingEngine = Depends(get_costing_engine)):
    return engine.get_defaults()
