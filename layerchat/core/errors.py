"""
Exception types shared across the orchestration pipeline.

Only backend failures are surfaced to clients; tool and classification issues
are absorbed and degrade gracefully.
"""


class LayerChatError(Exception):
    """Base class for all LayerChat errors."""
    pass


class ToolUnavailable(LayerChatError):
    """Raised inside a tool adapter when its remote service cannot be used.

    Adapters convert it into a degraded ToolResult before returning.
    """
    pass


class GenerationBackendError(LayerChatError):
    """Raised when a text-generation backend fails."""
    pass


class UnknownModelError(GenerationBackendError):
    """Raised when no configured provider can serve the requested model."""
    pass


class InvalidTransition(LayerChatError):
    """Raised when the stream state machine is driven through an illegal edge."""
    pass


class RuleSpecError(LayerChatError):
    """Raised when a declarative governance rule cannot be compiled."""
    pass
