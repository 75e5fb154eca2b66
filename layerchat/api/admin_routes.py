"""
Admin routes for the governance configuration surface.

This module provides administrative endpoints for:
1. Reading and updating the governance mode
2. Registering and removing declarative rules
3. Listing the available governance modes

Changes take effect on the next request.
"""
from typing import Dict, List
import logging

from fastapi import APIRouter, Depends, HTTPException, Security
from fastapi.security import APIKeyHeader

from layerchat.core.dependencies import AppContext, get_context
from layerchat.core.errors import RuleSpecError
from layerchat.policy.engine import PolicyEngine, rank_rules
from layerchat.policy.rules import rule_from_spec
from layerchat.schemas.governance import GovernanceConfigView, GovernanceUpdate, ModeInfo, RuleSpec, RuleView

# Configure logging
logger = logging.getLogger(__name__)

# Create router
admin_router = APIRouter(prefix="/admin", tags=["admin"])

# Security - API Key header
API_KEY_NAME = "X-API-Key"
api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)


async def get_api_key(
    api_key: str = Security(api_key_header),
    context: AppContext = Depends(get_context),
) -> str:
    """Validate API key."""
    if not api_key or api_key != context.settings.ADMIN_API_KEY:
        raise HTTPException(
            status_code=403,
            detail="Invalid or missing API Key"
        )
    return api_key


def config_view(engine: PolicyEngine) -> GovernanceConfigView:
    config = engine.config
    return GovernanceConfigView(
        default_mode=config.default_mode,
        enable_governance=config.enable_governance,
        rules=[
            RuleView(name=rule.name, description=rule.description, priority=rule.priority)
            for rule in rank_rules(config.rules)
        ],
    )


@admin_router.get("/governance", response_model=GovernanceConfigView)
async def get_governance(
    context: AppContext = Depends(get_context),
    api_key: str = Depends(get_api_key),
):
    """Current governance configuration, rules in evaluation order."""
    return config_view(context.policy)


@admin_router.put("/governance", response_model=GovernanceConfigView)
async def update_governance(
    update: GovernanceUpdate,
    context: AppContext = Depends(get_context),
    api_key: str = Depends(get_api_key),
):
    """Update the default mode and/or the governance switch."""
    context.policy.update_config(
        default_mode=update.default_mode,
        enable_governance=update.enable_governance,
    )
    return config_view(context.policy)


@admin_router.post("/governance/rules", response_model=RuleView, status_code=201)
async def add_governance_rule(
    spec: RuleSpec,
    context: AppContext = Depends(get_context),
    api_key: str = Depends(get_api_key),
):
    """
    Register a declarative rule.

    A rule with the same name is replaced.
    """
    try:
        rule = rule_from_spec(spec)
    except RuleSpecError as e:
        raise HTTPException(status_code=422, detail=str(e))
    context.policy.add_rule(rule)
    return RuleView(name=rule.name, description=rule.description, priority=rule.priority)


@admin_router.delete("/governance/rules/{name}")
async def remove_governance_rule(
    name: str,
    context: AppContext = Depends(get_context),
    api_key: str = Depends(get_api_key),
) -> Dict[str, str]:
    """Remove a rule by name."""
    if not context.policy.remove_rule(name):
        raise HTTPException(status_code=404, detail=f"Rule not found: {name}")
    return {"status": "removed", "name": name}


@admin_router.get("/governance/modes", response_model=List[ModeInfo])
async def list_governance_modes(api_key: str = Depends(get_api_key)):
    """Available governance modes."""
    return [ModeInfo(**mode) for mode in PolicyEngine.available_modes()]
