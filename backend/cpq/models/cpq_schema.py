"""
CPQ request schemas.

Validation lives here, at the HTTP boundary: the engine itself accepts any
dict snapshot and degrades silently, so malformed payloads must be stopped
before they reach it.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from cpq.config import CATALOG_TYPES

CalcMode = Literal["per_month", "per_guard"]


class CatalogItem(BaseModel):
    """Reusable priced service/material shared across quotes."""
    id: str
    type: str = Field(..., description="e.g., uniform, exam, meal, radio, vehicle_rent")
    name: str
    unit: Optional[str] = Field(None, description="Billing unit, e.g., mes, año, semestre")
    base_price: float = Field(0.0, ge=0)
    is_default: bool = False
    default_visibility: str = "visible"
    active: bool = True

    @field_validator("type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        if value not in CATALOG_TYPES:
            raise ValueError(f"unknown catalog type: {value}")
        return value


class QuoteCostItem(BaseModel):
    catalog_item_id: str
    calc_mode: CalcMode = "per_month"
    quantity: Optional[float] = Field(1.0, ge=0)
    unit_price_override: Optional[float] = Field(None, ge=0)
    is_enabled: bool = True
    visibility: str = "visible"
    notes: Optional[str] = None


class QuoteSetItem(BaseModel):
    """Uniform or exam line: a catalog entry that is part of the per-guard set."""
    catalog_item_id: str
    unit_price_override: Optional[float] = Field(None, ge=0)
    active: bool = True


class QuoteMeal(BaseModel):
    meal_type: str = Field(..., description="Matched case-insensitively to catalog meal names")
    meals_per_day: float = Field(0.0, ge=0)
    days_of_service: float = Field(0.0, ge=0)
    price_override: Optional[float] = Field(None, ge=0)
    is_enabled: bool = True
    visibility: str = "visible"


class QuoteVehicle(BaseModel):
    is_enabled: bool = True
    vehicles_count: float = Field(1.0, ge=0)
    rent_monthly: float = Field(0.0, ge=0)
    maintenance_monthly: float = Field(0.0, ge=0)
    km_per_day: float = Field(0.0, ge=0)
    days_per_month: float = Field(0.0, ge=0)
    km_per_liter: float = Field(0.0, ge=0)
    fuel_price: float = Field(0.0, ge=0)
    visibility: str = "visible"


class QuoteInfrastructure(BaseModel):
    item_type: str = ""
    is_enabled: bool = True
    quantity: float = Field(1.0, ge=0)
    rent_monthly: float = Field(0.0, ge=0)
    has_fuel: bool = False
    fuel_liters_per_hour: float = Field(0.0, ge=0)
    fuel_hours_per_day: float = Field(0.0, ge=0)
    fuel_days_per_month: float = Field(0.0, ge=0)
    fuel_price: float = Field(0.0, ge=0)
    visibility: str = "visible"


class QuoteParameters(BaseModel):
    """Per-quote overrides; any field left as None takes the global default."""
    monthly_hours_standard: Optional[float] = Field(None, ge=0)
    avg_stay_months: Optional[float] = Field(None, ge=0)
    uniform_changes_per_year: Optional[float] = Field(None, ge=0)
    holiday_annual_count: Optional[float] = Field(None, ge=0)
    holiday_commercial_buffer_pct: Optional[float] = None
    financial_enabled: Optional[bool] = None
    financial_rate_pct: Optional[float] = Field(None, ge=0)
    sale_price_base: Optional[float] = Field(None, ge=0)
    sale_price_monthly: Optional[float] = Field(None, ge=0)
    policy_enabled: Optional[bool] = None
    policy_rate_pct: Optional[float] = Field(None, ge=0)
    policy_admin_rate_pct: Optional[float] = Field(None, ge=0)
    policy_contract_months: Optional[float] = Field(None, ge=0)
    policy_contract_pct: Optional[float] = Field(None, ge=0)
    contract_months: Optional[float] = Field(None, ge=0)
    contract_amount: Optional[float] = Field(None, ge=0)
    margin_pct: Optional[float] = None


class Position(BaseModel):
    """Priced staffing line; monthly_position_cost is the allocation weight."""
    id: str
    num_guards: int = Field(0, ge=0)
    num_puestos: int = Field(1, ge=0)
    monthly_position_cost: float = Field(0.0, ge=0)


def _unique_position_ids(positions: List[Position]) -> None:
    ids = [p.id for p in positions]
    if len(ids) != len(set(ids)):
        raise ValueError("position ids must be unique")


class CostingRequest(BaseModel):
    quote_id: Optional[str] = None
    parameters: QuoteParameters = Field(default_factory=QuoteParameters)
    catalog: List[CatalogItem] = []
    cost_items: List[QuoteCostItem] = []
    uniforms: List[QuoteSetItem] = []
    exams: List[QuoteSetItem] = []
    meals: List[QuoteMeal] = []
    vehicles: List[QuoteVehicle] = []
    infrastructure: List[QuoteInfrastructure] = []
    positions: List[Position] = []

    @model_validator(mode="after")
    def _check_positions(self):
        _unique_position_ids(self.positions)
        return self


class AllocationRequest(BaseModel):
    positions: List[Position]
    total_sale_price: float
    monthly_hours_standard: Optional[float] = Field(None, ge=0)

    @model_validator(mode="after")
    def _check_positions(self):
        _unique_position_ids(self.positions)
        return self


class DefaultsRequest(BaseModel):
    catalog: List[CatalogItem]
    cost_items: List[QuoteCostItem] = []
    uniforms: List[QuoteSetItem] = []
    exams: List[QuoteSetItem] = []
    meals: List[QuoteMeal] = []


class QuoteCollections(BaseModel):
    cost_items: List[QuoteCostItem] = []
    uniforms: List[QuoteSetItem] = []
    exams: List[QuoteSetItem] = []
    meals: List[QuoteMeal] = []


class MergeRequest(BaseModel):
    existing: QuoteCollections = Field(default_factory=QuoteCollections)
    submitted: QuoteCollections = Field(default_factory=QuoteCollections)
