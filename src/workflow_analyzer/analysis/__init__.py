"""LLM-backed interpretation of workflow graphs."""

from .analyzer import InsightAnalyzer, degraded_insights, parse_response
from .llm import LLMClient, LLMConfig
from .models import Epic, Feature, RiskItem, Task, UserStory, WorkflowInsights

__all__ = [
    "Epic",
    "Feature",
    "InsightAnalyzer",
    "LLMClient",
    "LLMConfig",
    "RiskItem",
    "Task",
    "UserStory",
    "WorkflowInsights",
    "degraded_insights",
    "parse_response",
]
