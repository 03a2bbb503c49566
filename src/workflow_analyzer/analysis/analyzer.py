"""Insight analyzer: LLM interpretation of a workflow graph as a backlog."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, List

from pydantic import ValidationError

from ..core.exceptions import InsightParseError
from ..core.models import WorkflowAnalysis
from .llm import LLMClient
from .models import RiskItem, TargetProcessImplementation, WorkflowInsights
from .prompts import MAX_TOKENS, TEMPERATURE, build_analysis_prompt, build_report_prompt

logger = logging.getLogger("workflow_analyzer.analysis")

_JSON_BLOCK = re.compile(r"```json\s*([\s\S]*?)\s*```")

DEGRADED_SUMMARY = "Analysis completed but response formatting was invalid"
RAW_EXCERPT_CHARS = 500


def parse_response(text: str) -> WorkflowInsights:
    """Parse the first fenced ```json block of a model reply.

    Missing optional fields are filled with placeholders by the model defaults.

    Raises:
        InsightParseError: If there is no JSON block or it does not validate
    """
    match = _JSON_BLOCK.search(text or "")
    if not match:
        raise InsightParseError(
            "No JSON found in LLM response", context={"preview": (text or "")[:200]}
        )
    try:
        data = json.loads(match.group(1))
    except json.JSONDecodeError as exc:
        raise InsightParseError(
            "Invalid JSON in LLM response", context={"error": str(exc)}
        ) from exc
    if not isinstance(data, dict):
        raise InsightParseError(
            "LLM response JSON was not an object", context={"preview": match.group(1)[:200]}
        )
    try:
        return WorkflowInsights.model_validate(_drop_nulls(data))
    except ValidationError as exc:
        raise InsightParseError(
            "LLM response JSON did not match the expected shape",
            context={"error": str(exc)[:2000]},
        ) from exc


def _drop_nulls(value: Any) -> Any:
    # Explicit nulls fall back to field defaults instead of failing validation.
    if isinstance(value, dict):
        return {key: _drop_nulls(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [_drop_nulls(item) for item in value if item is not None]
    return value


def degraded_insights(raw_response: str) -> WorkflowInsights:
    """Well-typed stand-in used whenever the model reply cannot be used."""
    excerpt = (raw_response or "")[:RAW_EXCERPT_CHARS]
    return WorkflowInsights(
        workflow_summary=DEGRADED_SUMMARY,
        epics=[],
        features=[],
        target_process_implementation=TargetProcessImplementation(
            implementation_approach="Manual review required due to parsing error",
        ),
        business_value="Unable to determine from malformed response",
        risk_assessment=[
            RiskItem(
                risk="Response parsing failed",
                impact="medium",
                mitigation="Review the workflow manually for detailed analysis",
            )
        ],
        raw_response_excerpt=excerpt or None,
    )


class InsightAnalyzer:
    """Ask the LLM to interpret a workflow graph and parse its answer."""

    def __init__(self, llm: LLMClient, *, max_tokens: int = MAX_TOKENS, temperature: float = TEMPERATURE):
        self.llm = llm
        self.max_tokens = max_tokens
        self.temperature = temperature

    def analyze(self, workflow: WorkflowAnalysis) -> WorkflowInsights:
        """Run the analysis. Never raises: failures yield `degraded_insights`."""
        prompt = build_analysis_prompt(workflow)
        response_text = ""
        try:
            response_text = self.llm.complete(
                prompt, max_tokens=self.max_tokens, temperature=self.temperature
            )
            insights = parse_response(response_text)
        except Exception as exc:
            logger.error("Workflow analysis failed, using degraded result: %s", exc)
            return degraded_insights(response_text)

        logger.info(
            "Parsed insights: epics=%d features=%d stories=%d risks=%d",
            len(insights.epics),
            len(insights.features),
            insights.user_story_count,
            len(insights.risk_assessment),
        )
        return insights

    def generate_report(self, workflow: WorkflowAnalysis, insights: WorkflowInsights) -> str:
        """Markdown report from the LLM, or a locally rendered one on failure."""
        try:
            report = self.llm.complete(
                build_report_prompt(workflow, insights),
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except Exception as exc:
            logger.error("Report generation failed, using fallback report: %s", exc)
            return render_fallback_report(workflow, insights)
        if not report.strip():
            logger.warning("LLM returned an empty report, using fallback report")
            return render_fallback_report(workflow, insights)
        return report


def render_fallback_report(workflow: WorkflowAnalysis, insights: WorkflowInsights) -> str:
    lines: List[str] = [
        "# Miro Board Analysis Report",
        "",
        f"## Board: {workflow.board_info.name}",
        "",
        "### Summary",
        insights.workflow_summary,
        "",
        "### Workflow Structure",
        f"- **Total Steps**: {workflow.insights.total_steps}",
        f"- **Connections**: {len(workflow.connections)}",
        f"- **Entry Points**: {len(workflow.insights.entry_points)}",
        f"- **Exit Points**: {len(workflow.insights.exit_points)}",
        f"- **Bottlenecks**: {len(workflow.insights.bottlenecks)}",
    ]
    for recommendation in workflow.insights.recommendations:
        lines.append(f"- {recommendation}")

    lines += ["", "### Epics"]
    if insights.epics:
        for epic in insights.epics:
            lines += [f"#### {epic.title} ({epic.epic_id})", epic.description, ""]
    else:
        lines.append("No epics identified")

    lines += ["", "### Features and User Stories"]
    if insights.features:
        for feature in insights.features:
            lines += [f"#### {feature.title} ({feature.feature_id})", feature.description, ""]
            lines.append("**User Stories:**")
            for story in feature.user_stories:
                lines.append(f"- **{story.title}** ({story.story_id})")
                lines.append(f"  {story.narrative()}")
                if story.tasks:
                    lines.append("  **Tasks:**")
                    lines.extend(f"    - {task.title}" for task in story.tasks)
            lines.append("")
    else:
        lines.append("No features identified")

    if insights.risk_assessment:
        lines += ["", "### Risks"]
        for risk in insights.risk_assessment:
            lines.append(f"- **{risk.impact.upper()}**: {risk.risk}")
            if risk.mitigation:
                lines.append(f"  *Mitigation*: {risk.mitigation}")

    return "\n".join(lines) + "\n"
