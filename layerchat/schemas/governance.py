from typing import List, Literal, Optional
import re

from pydantic import BaseModel, Field, field_validator

from layerchat.schemas.chat import WireModel

GovernanceMode = Literal["smart", "internal", "internet"]


class RuleSpec(WireModel):
    """Declarative governance rule registered at runtime."""
    name: str = Field(..., min_length=1)
    description: str = ""
    priority: int = 50
    patterns: List[str] = Field(..., min_length=1)
    verdict: bool
    unless: List[str] = Field(default_factory=list)

    @field_validator("patterns")
    @classmethod
    def check_patterns(cls, v: List[str]) -> List[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid pattern {pattern!r}: {e}")
        return v


class RuleView(WireModel):
    name: str
    description: str
    priority: int


class GovernanceConfigView(WireModel):
    default_mode: GovernanceMode
    enable_governance: bool
    rules: List[RuleView]


class GovernanceUpdate(WireModel):
    """Partial update of the governance configuration surface."""
    default_mode: Optional[GovernanceMode] = None
    enable_governance: Optional[bool] = None


class ModeInfo(BaseModel):
    value: GovernanceMode
    label: str
    description: str
