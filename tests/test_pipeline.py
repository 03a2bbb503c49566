"""End-to-end pipeline tests against in-memory clients."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone

import pytest

from workflow_analyzer.analysis.analyzer import DEGRADED_SUMMARY, InsightAnalyzer
from workflow_analyzer.core.exceptions import MiroAPIError
from workflow_analyzer.graph.builder import WorkflowGraphBuilder
from workflow_analyzer.pipeline import AnalysisPipeline, artifact_timestamp
from workflow_analyzer.publishing.publisher import WorkItemPublisher


@pytest.fixture
def make_pipeline(tmp_path, scripted_llm, ticket_client):
    def _make(miro, *replies, project_id=1):
        return AnalysisPipeline(
            miro=miro,
            builder=WorkflowGraphBuilder(miro),
            analyzer=InsightAnalyzer(scripted_llm(*replies)),
            publisher=WorkItemPublisher(ticket_client, project_id=project_id),
            output_dir=tmp_path / "out",
        )

    return _make


def test_artifact_timestamp_format():
    stamp = artifact_timestamp(datetime(2024, 5, 1, 10, 20, 30, 123456, tzinfo=timezone.utc))
    assert stamp == "2024-05-01T10-20-30-123Z"
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z", artifact_timestamp())


def test_run_writes_three_artifacts(make_pipeline, linear_board, insights_reply, ticket_client, tmp_path):
    pipeline = make_pipeline(linear_board, insights_reply, "# Report\n")
    result = pipeline.run("uXjVBoard=")

    paths = result.artifacts
    assert paths.raw_data.parent == tmp_path / "out"
    assert paths.raw_data.name.startswith("workflow-data-")
    assert paths.report.name.startswith("workflow-report-")
    assert paths.work_items.name.startswith("work-items-")
    # All three files share one timestamp.
    stamps = {
        paths.raw_data.name[len("workflow-data-") : -len(".json")],
        paths.report.name[len("workflow-report-") : -len(".md")],
        paths.work_items.name[len("work-items-") : -len(".json")],
    }
    assert len(stamps) == 1

    raw = json.loads(paths.raw_data.read_text(encoding="utf-8"))
    assert set(raw) == {"workflowData", "openaiInsights", "workItemResults"}
    assert raw["workflowData"]["boardInfo"]["name"] == "Onboarding Flow"
    assert len(raw["openaiInsights"]["epics"]) == 2
    assert paths.report.read_text(encoding="utf-8") == "# Report\n"
    work_items = json.loads(paths.work_items.read_text(encoding="utf-8"))
    assert len(work_items["userStories"]) == 1

    summary = result.summary()
    assert summary["board"] == "Onboarding Flow"
    assert summary["epicsCreated"] == 2
    assert summary["userStoriesCreated"] == 1


def test_output_dir_override(make_pipeline, linear_board, insights_reply, tmp_path):
    pipeline = make_pipeline(linear_board, insights_reply, "# Report\n")
    result = pipeline.run("uXjVBoard=", output_dir=str(tmp_path / "custom"))
    assert result.artifacts.report.parent == tmp_path / "custom"


def test_new_project_is_named_after_board(make_pipeline, linear_board, insights_reply, ticket_client):
    pipeline = make_pipeline(linear_board, insights_reply, "# Report\n", project_id=0)
    result = pipeline.run("uXjVBoard=")
    assert result.work_items.project.name == "AI_Workflow_Onboarding_Flow_Analysis"


def test_malformed_llm_reply_still_completes(make_pipeline, linear_board, ticket_client):
    pipeline = make_pipeline(linear_board, "sorry, no JSON", RuntimeError("down"))
    result = pipeline.run("uXjVBoard=")

    assert result.insights.workflow_summary == DEGRADED_SUMMARY
    assert ticket_client.created == []
    assert result.report.startswith("# Miro Board Analysis Report")
    assert result.artifacts.report.exists()


def test_board_failure_aborts_before_writing(make_pipeline, fake_miro, tmp_path):
    pipeline = make_pipeline(fake_miro(failing={"get_board"}))
    with pytest.raises(MiroAPIError):
        pipeline.run("b")
    assert not (tmp_path / "out").exists()


def test_list_boards(make_pipeline, fake_miro):
    board = fake_miro()
    boards = make_pipeline(board).list_boards()
    assert boards[0].name == "Onboarding Flow"
    assert ("list_boards", 20, 0) in board.calls
