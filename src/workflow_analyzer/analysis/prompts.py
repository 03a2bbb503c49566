"""Prompt templates for backlog extraction and report generation."""

from __future__ import annotations

import json
from typing import List

from ..core.models import WorkflowAnalysis
from .models import WorkflowInsights

MAX_TOKENS = 4000
TEMPERATURE = 0.7

# Caps keep very large boards inside the model's context window.
MAX_PROMPT_CONNECTIONS = 200
MAX_PROMPT_GROUPS = 50

RESPONSE_SCHEMA = """```json
{
  "workflowSummary": "Brief summary of the workflow",
  "epics": [
    {
      "epicId": "EPIC-001",
      "title": "Epic title extracted from the board",
      "description": "Brief description of the epic",
      "businessValue": "Business value statement",
      "acceptanceCriteria": ["Key acceptance criteria"],
      "estimatedEffort": "T-shirt size (XS, S, M, L, XL)",
      "priority": "high|medium|low"
    }
  ],
  "features": [
    {
      "featureId": "FEAT-001",
      "epicId": "EPIC-001",
      "title": "Feature title from the board",
      "description": "Feature description",
      "userStories": [
        {
          "storyId": "US-001",
          "title": "User story title",
          "asA": "As a [user type]",
          "iWant": "I want [functionality]",
          "soThat": "So that [business benefit]",
          "acceptanceCriteria": ["Acceptance criteria"],
          "tasks": [
            {
              "taskId": "TASK-001",
              "title": "Task title",
              "description": "Task description",
              "estimatedHours": 8
            }
          ]
        }
      ]
    }
  ],
  "targetProcessImplementation": {
    "processName": "Name of the process",
    "targetSystem": "System the backlog is implemented in",
    "implementationApproach": "Short approach statement",
    "keyStakeholders": ["Stakeholder"],
    "successMetrics": ["Metric"]
  },
  "businessValue": "Overall business value",
  "estimatedTimeToMarket": "Rough estimate",
  "riskAssessment": [
    {"risk": "Risk description", "impact": "high|medium|low", "mitigation": "Mitigation"}
  ]
}
```"""


def _node_lines(workflow: WorkflowAnalysis) -> List[str]:
    return [
        f'- Node {node.id}: "{node.title}" (Type: {node.type})'
        + (f" [tags: {', '.join(node.tags)}]" if node.tags else "")
        for node in workflow.nodes
    ]


def _connection_lines(workflow: WorkflowAnalysis) -> List[str]:
    lines = []
    for conn in workflow.connections[:MAX_PROMPT_CONNECTIONS]:
        label = f' "{conn.label}"' if conn.label else ""
        lines.append(f"- {conn.from_} -> {conn.to}{label}")
    return lines


def build_analysis_prompt(workflow: WorkflowAnalysis) -> str:
    board = workflow.board_info
    nodes = "\n".join(_node_lines(workflow)) or "- (no nodes)"
    connections = "\n".join(_connection_lines(workflow)) or "- (no connections)"
    groups = "\n".join(
        f"- Group {group.id}: {', '.join(group.node_ids)}"
        for group in workflow.groups[:MAX_PROMPT_GROUPS]
    ) or "- (no groups)"
    tags = ", ".join(tag.title for tag in workflow.tags if tag.title) or "(none)"
    insights = workflow.insights

    return f"""
You are an expert Product Owner analyzing a Miro workflow. Extract and structure the key deliverables from this workflow into epics, features, user stories, and tasks with their titles.

## Board Information
- Board Name: {board.name}
- Description: {board.description or 'No description provided'}

## Workflow Nodes ({len(workflow.nodes)} total):
{nodes}

## Connections ({len(workflow.connections)} total):
{connections}

## Groups:
{groups}

## Board Tags: {tags}

## Structure
- Entry points: {', '.join(insights.entry_points) or 'none'}
- Exit points: {', '.join(insights.exit_points) or 'none'}

## Analysis Request
Extract the titles of epics, features, user stories, and tasks (if needed) from this Miro board workflow. Provide your analysis in the following JSON format:

{RESPONSE_SCHEMA}

Focus on:
1. Extracting titles directly from the Miro board nodes
2. Creating clear, concise titles for epics, features, and user stories
3. Including tasks only when they are clearly identifiable from the board
4. Maintaining the hierarchy: Epic -> Feature -> User Story -> Task
"""


def build_report_prompt(workflow: WorkflowAnalysis, insights: WorkflowInsights) -> str:
    return f"""
Create a clean report focusing on the extracted epics, features, user stories, and tasks from the Miro board:

Board: {workflow.board_info.name}
Workflow Nodes: {len(workflow.nodes)}

Product Owner Analysis:
{json.dumps(insights.to_dict(), indent=2)}

Please create a well-formatted markdown report that includes:
1. Summary of extracted items
2. Epic Titles and Brief Descriptions
3. Feature Titles grouped by Epic
4. User Story Titles grouped by Feature
5. Task Titles (if any) grouped by User Story

Keep it simple and focused on the titles and hierarchy extracted from the board.
"""
