"""
Governance engine deciding whether a query may use external retrieval.

The engine holds an immutable snapshot of its configuration. Every change
builds a new snapshot and swaps the reference, so a decision in flight always
sees one consistent rule table.
"""
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, List, Optional, Tuple
import logging

from layerchat.core.governance_settings import GOVERNANCE_MODES

logger = logging.getLogger(__name__)

DEFAULT_RULE_NAME = "default"
GOVERNANCE_DISABLED = "governance_disabled"


@dataclass(frozen=True)
class GovernanceRule:
    """A single prioritized predicate.

    ``evaluate`` returns True (use the internet), False (internal knowledge)
    or None to abstain and let the next rule decide.
    """
    name: str
    description: str
    priority: int
    evaluate: Callable[[str], Optional[bool]] = field(compare=False)


@dataclass(frozen=True)
class GovernanceConfig:
    default_mode: str = "smart"
    enable_governance: bool = True
    rules: Tuple[GovernanceRule, ...] = ()


@dataclass(frozen=True)
class PolicyDecision:
    allow_external: bool
    matched_rule: str
    reason: str


@dataclass(frozen=True)
class _Snapshot:
    config: GovernanceConfig
    ranked: Tuple[GovernanceRule, ...]


def rank_rules(rules: Iterable[GovernanceRule]) -> Tuple[GovernanceRule, ...]:
    """
    Order rules by descending priority.

    ``sorted`` is stable, so equal priorities keep registration order.
    """
    return tuple(sorted(rules, key=lambda rule: -rule.priority))


class PolicyEngine:
    """Rule evaluator with atomically replaceable configuration."""

    def __init__(self, config: Optional[GovernanceConfig] = None):
        self._snapshot = self._build(config or GovernanceConfig())

    @staticmethod
    def _build(config: GovernanceConfig) -> _Snapshot:
        if config.default_mode not in ("smart", "internal", "internet"):
            raise ValueError(f"Unknown governance mode: {config.default_mode}")
        return _Snapshot(config=config, ranked=rank_rules(config.rules))

    @property
    def config(self) -> GovernanceConfig:
        return self._snapshot.config

    def decide(self, query: str) -> PolicyDecision:
        """
        Decide whether external retrieval is allowed for a query.

        Args:
            query: Raw user text

        Returns:
            PolicyDecision naming the rule that decided
        """
        snapshot = self._snapshot
        config = snapshot.config
        default_allow = config.default_mode == "internet"

        if not config.enable_governance:
            return PolicyDecision(
                allow_external=default_allow,
                matched_rule=GOVERNANCE_DISABLED,
                reason=f"Governance disabled, using {config.default_mode} mode",
            )

        lower = query.lower()
        for rule in snapshot.ranked:
            verdict = rule.evaluate(lower)
            if verdict is None:
                continue
            logger.info(
                f"Governance: rule '{rule.name}' determined "
                f"{'INTERNET' if verdict else 'INTERNAL'} for query: '{query[:50]}'"
            )
            return PolicyDecision(
                allow_external=bool(verdict),
                matched_rule=rule.name,
                reason=f"Rule: {rule.name} - {rule.description}",
            )

        # Every rule abstained
        return PolicyDecision(
            allow_external=default_allow,
            matched_rule=DEFAULT_RULE_NAME,
            reason=f"No specific rule matched, using default {config.default_mode} mode",
        )

    def update_config(
        self,
        default_mode: Optional[str] = None,
        enable_governance: Optional[bool] = None,
    ) -> GovernanceConfig:
        """Replace mode flags; takes effect for the next decision."""
        current = self._snapshot.config
        updated = replace(
            current,
            default_mode=current.default_mode if default_mode is None else default_mode,
            enable_governance=current.enable_governance if enable_governance is None else enable_governance,
        )
        self._snapshot = self._build(updated)
        logger.info(
            f"Governance config updated: mode={updated.default_mode}, enabled={updated.enable_governance}"
        )
        return updated

    def replace_rules(self, rules: Iterable[GovernanceRule]) -> None:
        """Swap the whole rule table."""
        current = self._snapshot.config
        self._snapshot = self._build(replace(current, rules=tuple(rules)))

    def add_rule(self, rule: GovernanceRule) -> None:
        rules: List[GovernanceRule] = [r for r in self._snapshot.config.rules if r.name != rule.name]
        rules.append(rule)
        self.replace_rules(rules)
        logger.info(f"Governance rule registered: {rule.name} (priority {rule.priority})")

    def remove_rule(self, name: str) -> bool:
        """
        Remove a rule by name.

        Returns:
            True if a rule was removed
        """
        rules = self._snapshot.config.rules
        remaining = [r for r in rules if r.name != name]
        if len(remaining) == len(rules):
            return False
        self.replace_rules(remaining)
        logger.info(f"Governance rule removed: {name}")
        return True

    @staticmethod
    def available_modes() -> List[dict]:
        return [dict(mode) for mode in GOVERNANCE_MODES]
