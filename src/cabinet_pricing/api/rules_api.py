"""
Rules API - FastAPI router for pricing rule management.
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import Literal, Optional

from ..engine.models import PricingRule
from ..engine.pricing_engine import PricingEngine
from ..services.rules_service import RulesService
from .state import get_engine, get_rules

router = APIRouter(prefix="/api/rules", tags=["rules"])


# Pydantic models for API
class StepModel(BaseModel):
    """One formula step."""
    left_operand: Optional[str] = None
    operator: str
    right_operand: str
    right_operand_type: Literal['literal', 'factor'] = 'literal'


class RuleCreate(BaseModel):
    """Request model for creating a rule."""
    rule_id: Optional[str] = None
    name: Optional[str] = None
    active: bool = True
    result: str
    formula: list[StepModel]
    notes: Optional[str] = None
    position: Optional[int] = Field(None, ge=0)

    def to_rule(self) -> PricingRule:
        return PricingRule.from_dict(self.model_dump(exclude={'position'}))


class RuleUpdate(BaseModel):
    """Request model for updating a rule."""
    name: Optional[str] = None
    active: Optional[bool] = None
    result: Optional[str] = None
    formula: Optional[list[StepModel]] = None
    notes: Optional[str] = None


class RuleResponse(BaseModel):
    """Response model for a rule."""
    rule_id: str
    name: str
    active: bool
    result: str
    formula: list[StepModel]
    notes: Optional[str]


class ValidationResponse(BaseModel):
    """Response model for validation."""
    valid: bool
    errors: list[str]
    warnings: list[str]


class MoveRequest(BaseModel):
    position: int = Field(ge=0)


class EvaluateRequest(BaseModel):
    """Dry-run a rule list against inputs."""
    base_price: float
    width: float
    height: float
    depth: float
    rules: list[RuleCreate]


def _response(rule: PricingRule) -> RuleResponse:
    return RuleResponse(**rule.to_dict())


# Endpoints

@router.get("", response_model=list[RuleResponse])
async def list_rules(include_inactive: bool = True, service: RulesService = Depends(get_rules)):
    """List all pricing rules in execution order."""
    return [_response(rule) for rule in service.list_rules(include_inactive=include_inactive)]


@router.get("/stats")
async def get_stats(service: RulesService = Depends(get_rules)):
    """Get rule statistics."""
    return service.get_stats()


@router.get("/{rule_id}", response_model=RuleResponse)
async def get_rule(rule_id: str, service: RulesService = Depends(get_rules)):
    """Get a single rule by ID."""
    rule = service.get_rule(rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail=f"Rule '{rule_id}' not found")
    return _response(rule)


@router.post("", response_model=RuleResponse)
async def create_rule(
    rule_data: RuleCreate,
    service: RulesService = Depends(get_rules),
    engine: PricingEngine = Depends(get_engine),
):
    """Create a new pricing rule."""
    rule = rule_data.to_rule()

    # Validate first
    validation = service.validate_rule(rule, position=rule_data.position)
    if not validation.valid:
        raise HTTPException(status_code=400, detail={"errors": validation.errors})

    try:
        created = service.create_rule(rule, position=rule_data.position)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    engine.reload_data()
    return _response(created)


@router.put("/{rule_id}", response_model=RuleResponse)
async def update_rule(
    rule_id: str,
    updates: RuleUpdate,
    service: RulesService = Depends(get_rules),
    engine: PricingEngine = Depends(get_engine),
):
    """Update an existing rule."""
    existing = service.get_rule(rule_id)
    if not existing:
        raise HTTPException(status_code=404, detail=f"Rule with ID '{rule_id}' not found")

    # null clears notes; any other null leaves the field as it is
    update_dict = {
        key: value
        for key, value in updates.model_dump(exclude_unset=True).items()
        if value is not None or key == 'notes'
    }
    candidate = existing.to_dict()
    candidate.update(update_dict)
    validation = service.validate_rule(PricingRule.from_dict(candidate))
    if not validation.valid:
        raise HTTPException(status_code=400, detail={"errors": validation.errors})

    updated = service.update_rule(rule_id, update_dict)
    engine.reload_data()
    return _response(updated)


@router.delete("/{rule_id}")
async def delete_rule(
    rule_id: str,
    service: RulesService = Depends(get_rules),
    engine: PricingEngine = Depends(get_engine),
):
    """Delete a rule."""
    try:
        service.delete_rule(rule_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    engine.reload_data()
    return {"success": True, "message": f"Rule '{rule_id}' deleted"}


@router.post("/{rule_id}/move", response_model=list[RuleResponse])
async def move_rule(
    rule_id: str,
    move: MoveRequest,
    service: RulesService = Depends(get_rules),
    engine: PricingEngine = Depends(get_engine),
):
    """Change a rule's place in the execution order."""
    try:
        rules = service.move_rule(rule_id, move.position)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    engine.reload_data()
    return [_response(rule) for rule in rules]


@router.post("/validate", response_model=ValidationResponse)
async def validate_rule(rule_data: RuleCreate, service: RulesService = Depends(get_rules)):
    """Validate a rule without saving."""
    result = service.validate_rule(rule_data.to_rule(), position=rule_data.position)
    return ValidationResponse(valid=result.valid, errors=result.errors, warnings=result.warnings)


@router.post("/evaluate")
async def evaluate_rules(request: EvaluateRequest, engine: PricingEngine = Depends(get_engine)):
    """Evaluate an unsaved rule list, returning the price and trace."""
    result = engine.calculate(
        request.base_price, request.width, request.height, request.depth,
        rules=[r.to_rule() for r in request.rules],
    )
    return {
        "displayed_price": result.displayed_price,
        "source": result.source,
        "variables": result.variables,
        "warnings": result.warnings,
        "trace": result.get_trace_text(),
    }
