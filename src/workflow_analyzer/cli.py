"""Command-line entrypoint.

    workflow-analyzer analyze <project-id> [board-id] [output-dir]
    workflow-analyzer list <project-id>
    workflow-analyzer help
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from dotenv import load_dotenv

from .config.settings import load_settings
from .pipeline import AnalysisPipeline, PipelineResult
from .services.miro_client import MiroBoard, extract_board_id
from .utils.logging import setup_logging

logger = logging.getLogger("workflow_analyzer.cli")

HELP_TEXT = """
Miro Workflow Analyzer

Analyzes Miro boards, extracts a backlog with an LLM and creates the work
items in the target tracking system.

Commands:
  analyze <project-id> [board-id] [output-dir]  Analyze a board for a project
  list <project-id>                             List available boards
  help                                          Show this help message

Environment variables required:
  MIRO_ACCESS_TOKEN        Miro API access token
  OPENAI_API_KEY           OpenAI API key
  TARGET_API_BASE_URL      Base URL of the target tracking API
  TARGET_API_ACCESS_TOKEN  Access token for the target tracking API

Output:
  - Raw workflow data (JSON)
  - Formatted analysis report (Markdown)
  - Work item creation results (JSON)
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workflow-analyzer",
        description="Analyze Miro board workflows into tracked work items",
    )
    sub = parser.add_subparsers(dest="command")

    analyze = sub.add_parser("analyze", help="Analyze a board and create work items")
    analyze.add_argument("project_id", help="Target project id (0 creates a new project)")
    analyze.add_argument("board_id", nargs="?", help="Miro board id or URL")
    analyze.add_argument("output_dir", nargs="?", help="Directory for output artifacts")
    analyze.add_argument("--workflow-name", help="Name used when a project must be created")

    list_cmd = sub.add_parser("list", help="List available boards")
    list_cmd.add_argument("project_id", help="Target project id")

    sub.add_parser("help", help="Show detailed help")
    return parser


def print_summary(result: PipelineResult) -> None:
    workflow = result.workflow
    insights = result.insights
    work_items = result.work_items

    print("\nAnalysis Complete!")
    print("================================")
    print(f"Board: {workflow.board_info.name}")
    print(f"Nodes: {len(workflow.nodes)}")
    print(f"Connections: {len(workflow.connections)}")
    print(f"Tags: {len(workflow.tags)}")
    print(f"Groups: {len(workflow.groups)}")
    print(f"Entry Points: {len(workflow.insights.entry_points)}")
    print(f"Exit Points: {len(workflow.insights.exit_points)}")
    if insights.epics:
        print(f"Epics: {len(insights.epics)}")
    if insights.features:
        print(f"Features: {len(insights.features)}, User Stories: {insights.user_story_count}")
    if insights.risk_assessment:
        print(f"Risks Identified: {len(insights.risk_assessment)}")

    print("\nOutput Files:")
    print(f"Raw Data: {result.artifacts.raw_data}")
    print(f"Report: {result.artifacts.report}")
    print(f"Work Items: {result.artifacts.work_items}")

    print("\nWork Item Creation Results:")
    if work_items.project is not None:
        project = work_items.project
        print(f"Project Created: {project.id if project.success else 'Failed'}")
    print(f"Epics Created: {_ratio(work_items.epics)}")
    print(f"Features Created: {_ratio(work_items.features)}")
    print(f"User Stories Created: {_ratio(work_items.user_stories)}")

    print("\nQuick Insights:")
    print(f"Summary: {insights.workflow_summary}")
    if insights.estimated_time_to_market:
        print(f"Time to Market: {insights.estimated_time_to_market}")
    print(f"Target System: {insights.target_process_implementation.target_system}")
    print("\nBusiness Value:")
    print(insights.business_value)

    if insights.epics:
        print("\nTop Epics:")
        for index, epic in enumerate(insights.epics[:3], 1):
            print(f"{index}. [{epic.priority.upper()}] {epic.title} ({epic.epic_id})")
    if insights.risk_assessment:
        print("\nKey Risks:")
        for index, risk in enumerate(insights.risk_assessment[:3], 1):
            print(f"{index}. [{risk.impact.upper()}] {risk.risk}")


def _ratio(results) -> str:
    return f"{sum(1 for r in results if r.success)}/{len(results)}"


def print_boards(boards: List[MiroBoard]) -> None:
    if not boards:
        print("No boards found in your Miro account")
        return
    print("\nAvailable Boards:")
    print("==================")
    for index, board in enumerate(boards, 1):
        print(f"{index}. {board.name}")
        print(f"   ID: {board.id}")
        if board.modified_at:
            print(f"   Modified: {board.modified_at[:10]}")
        if board.description:
            print(f"   Description: {board.description}")
        print("")


def run(args: argparse.Namespace) -> int:
    if args.command in (None, "help"):
        print(HELP_TEXT)
        return 0

    settings = load_settings(project_id=args.project_id)
    pipeline = AnalysisPipeline.from_settings(settings)

    if args.command == "list":
        print_boards(pipeline.list_boards(limit=20))
        return 0

    raw_board = args.board_id or settings.default_board_id
    if not raw_board:
        print("Error: no board id given and MIRO_DEFAULT_BOARD_ID is not set", file=sys.stderr)
        return 1
    board_id = extract_board_id(raw_board)

    print(f"Starting analysis for project {settings.project_id}, board {board_id}")
    result = pipeline.run(board_id, output_dir=args.output_dir, workflow_name=args.workflow_name)
    print_summary(result)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    load_dotenv()
    setup_logging()
    try:
        return run(args)
    except Exception as exc:
        logger.exception("Application error")
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
