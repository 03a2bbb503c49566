"""Replicate an epic -> feature -> user story hierarchy in the ticketing system.

Every create call is isolated: a failure becomes a `WorkItemResult` with
`success=False` and the batch continues. Nothing is retried.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..analysis.models import Epic, Feature, UserStory, WorkflowInsights
from ..core.exceptions import WorkItemAPIError
from .client import TargetProcessClient

logger = logging.getLogger("workflow_analyzer.publish")

DEFAULT_WORKFLOW_NAME = "Miro_Board_Analysis"


@dataclass
class WorkItemResult:
    success: bool
    name: str
    id: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success, "name": self.name}
        if self.id is not None:
            payload["id"] = self.id
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass
class WorkItemCreationResults:
    project: Optional[WorkItemResult] = None
    epics: List[WorkItemResult] = field(default_factory=list)
    features: List[WorkItemResult] = field(default_factory=list)
    user_stories: List[WorkItemResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "epics": [r.to_dict() for r in self.epics],
            "features": [r.to_dict() for r in self.features],
            "userStories": [r.to_dict() for r in self.user_stories],
        }
        if self.project is not None:
            payload["project"] = self.project.to_dict()
        return payload


_WHITESPACE = re.compile(r"\s+")


def project_name_for(workflow_name: str) -> str:
    return f"AI_Workflow_{_WHITESPACE.sub('_', workflow_name)}_Analysis"


class WorkItemPublisher:
    """Create project, epics, features and user stories in order."""

    def __init__(self, client: TargetProcessClient, project_id: Optional[int] = None):
        self.client = client
        self.project_id = project_id or 0

    def publish(self, insights: WorkflowInsights, workflow_name: Optional[str] = None) -> WorkItemCreationResults:
        results = WorkItemCreationResults()

        if not self.project_id:
            logger.info("No project id set, creating a new project")
            project = self.create_project(workflow_name or DEFAULT_WORKFLOW_NAME)
            results.project = project
            if not project.success:
                logger.error("Failed to create project: %s", project.error)
                return results
            logger.info("Project %r created with id %s", project.name, project.id)

        epic_ids: Dict[str, int] = {}
        for epic in insights.epics:
            result = self.create_epic(epic)
            results.epics.append(result)
            if result.success and result.id:
                logger.info("Epic %r created with id %d", epic.title, result.id)
                epic_ids[epic.epic_id] = result.id
            else:
                logger.error("Failed to create epic %r: %s", epic.title, result.error)
        if not insights.epics:
            logger.warning("No epics found in analysis")

        for feature in insights.features:
            epic_id = epic_ids.get(feature.epic_id)
            if not epic_id:
                logger.error(
                    "Cannot create feature %r: epic %s not found", feature.title, feature.epic_id
                )
                continue

            result = self.create_feature(feature, epic_id)
            results.features.append(result)
            if not (result.success and result.id):
                logger.error("Failed to create feature %r: %s", feature.title, result.error)
                continue
            logger.info("Feature %r created with id %d", feature.title, result.id)

            for story in feature.user_stories:
                story_result = self.create_user_story(story, result.id)
                results.user_stories.append(story_result)
                if story_result.success and story_result.id:
                    logger.info("User story %r created with id %d", story.title, story_result.id)
                else:
                    logger.error(
                        "Failed to create user story %r: %s", story.title, story_result.error
                    )

        return results

    def create_project(self, workflow_name: str) -> WorkItemResult:
        name = project_name_for(workflow_name)
        result = self._attempt(name, lambda: self.client.create_project(name))
        if result.success and result.id is not None:
            self.project_id = result.id
        return result

    def create_epic(self, epic: Epic) -> WorkItemResult:
        return self._attempt(
            epic.title,
            lambda: self.client.create_epic(self.project_id, epic.title, epic.description),
        )

    def create_feature(self, feature: Feature, epic_id: int) -> WorkItemResult:
        return self._attempt(
            feature.title,
            lambda: self.client.create_feature(
                self.project_id, epic_id, feature.title, feature.description
            ),
        )

    def create_user_story(self, story: UserStory, feature_id: int) -> WorkItemResult:
        return self._attempt(
            story.title,
            lambda: self.client.create_user_story(
                self.project_id, feature_id, story.title, story.narrative()
            ),
        )

    def _attempt(self, name: str, create: Callable[[], int]) -> WorkItemResult:
        try:
            created_id = create()
        except WorkItemAPIError as exc:
            return WorkItemResult(success=False, name=name, error=exc.message)
        return WorkItemResult(success=True, name=name, id=created_id)
