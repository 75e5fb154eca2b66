"""
Governance: prioritized rules deciding whether external retrieval is allowed.
"""
from layerchat.policy.engine import GovernanceConfig, GovernanceRule, PolicyDecision, PolicyEngine
from layerchat.policy.rules import default_rules, rule_from_spec


def build_policy_engine(settings) -> PolicyEngine:
    """Create an engine with the default rule table and configured mode."""
    config = GovernanceConfig(
        default_mode=settings.GOVERNANCE_DEFAULT_MODE,
        enable_governance=settings.GOVERNANCE_ENABLED,
        rules=tuple(default_rules()),
    )
    return PolicyEngine(config)


__all__ = [
    "GovernanceConfig",
    "GovernanceRule",
    "PolicyDecision",
    "PolicyEngine",
    "build_policy_engine",
    "default_rules",
    "rule_from_spec",
]
