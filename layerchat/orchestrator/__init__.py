"""
Request planning, the streaming state machine, and the chat orchestrator.
"""
from layerchat.orchestrator.pipeline import ChatOrchestrator
from layerchat.orchestrator.plan import RequestPlan, plan_request
from layerchat.orchestrator.stream import TRANSITIONS, StreamState, StreamTransformer

__all__ = ["ChatOrchestrator", "RequestPlan", "plan_request", "TRANSITIONS", "StreamState", "StreamTransformer"]
