"""Template registry.

The registry is an immutable catalog mapping ``(client category, stage)`` to an
ordered tuple of task templates, plus a follow-up catalog keyed by completion
trigger tag. It is built once at startup and shared read-only by every
invocation.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from client_workflow_automation.engine.errors import CatalogError
from client_workflow_automation.engine.models import (
    ClientCategory,
    Stage,
    TaskCategory,
    TaskPriority,
)

from .templates_data import BUILTIN_CATALOG

logger = logging.getLogger(__name__)

CLIENT_NAME_PLACEHOLDER = "{{client_name}}"


class TaskTemplate(BaseModel):
    """A parameterized task, not yet bound to a client."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str = Field(min_length=1)
    description: str = Field(default="")
    category: TaskCategory
    priority: TaskPriority
    estimated_duration_minutes: int = Field(default=0, ge=0)
    completion_triggers: tuple[str, ...] = Field(default=())
    dependencies: tuple[str, ...] = Field(default=())


class StageTemplates(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    stage: str = Field(min_length=1)
    tasks: tuple[TaskTemplate, ...] = Field(default=())


class CatalogDocument(BaseModel):
    """On-disk shape of a template catalog."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_category: str = Field(default=ClientCategory.INDIVIDUAL.value)
    workflows: dict[str, tuple[StageTemplates, ...]]
    follow_ups: dict[str, TaskTemplate] = Field(default_factory=dict)


def _key(value: Stage | ClientCategory | str) -> str:
    return value.value if isinstance(value, (Stage, ClientCategory)) else str(value).strip()


class TemplateRegistry:
    """Read-only lookup of stage templates and follow-up templates."""

    def __init__(
        self,
        workflows: Mapping[str, Mapping[str, tuple[TaskTemplate, ...]]],
        follow_ups: Mapping[str, TaskTemplate],
        *,
        default_category: str = ClientCategory.INDIVIDUAL.value,
    ) -> None:
        if default_category not in workflows:
            raise CatalogError(f"Default category {default_category!r} has no workflow")

        self._workflows: Mapping[str, Mapping[str, tuple[TaskTemplate, ...]]] = MappingProxyType(
            {cat: MappingProxyType(dict(stages)) for cat, stages in workflows.items()}
        )
        self._follow_ups: Mapping[str, TaskTemplate] = MappingProxyType(dict(follow_ups))
        self._default_category = default_category

    @classmethod
    def from_document(cls, document: CatalogDocument) -> TemplateRegistry:
        workflows: dict[str, dict[str, tuple[TaskTemplate, ...]]] = {}
        for category, stages in document.workflows.items():
            by_stage: dict[str, tuple[TaskTemplate, ...]] = {}
            for entry in stages:
                if entry.stage in by_stage:
                    raise CatalogError(
                        f"Stage {entry.stage!r} is registered twice for category {category!r}"
                    )
                by_stage[entry.stage] = entry.tasks
            workflows[category] = by_stage
        return cls(workflows, document.follow_ups, default_category=document.default_category)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> TemplateRegistry:
        try:
            document = CatalogDocument.model_validate(raw)
        except ValidationError as e:
            raise CatalogError(f"Invalid template catalog: {e}") from e
        return cls.from_document(document)

    @classmethod
    def from_json_file(cls, path: Path) -> TemplateRegistry:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise CatalogError(f"Cannot read template catalog {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise CatalogError(f"Template catalog {path} is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise CatalogError(f"Template catalog {path} must be a JSON object")
        return cls.from_mapping(raw)

    @classmethod
    def builtin(cls) -> TemplateRegistry:
        return cls.from_mapping(BUILTIN_CATALOG)

    def with_default_category(self, category: str) -> TemplateRegistry:
        """Same templates, different fallback category."""

        return TemplateRegistry(self._workflows, self._follow_ups, default_category=category)

    @property
    def default_category(self) -> str:
        return self._default_category

    @property
    def categories(self) -> tuple[str, ...]:
        return tuple(self._workflows)

    def resolve_category(self, category: ClientCategory | str | None) -> str:
        """Map a client category onto a registered one, falling back to the default."""

        key = _key(category) if category is not None else ""
        return key if key in self._workflows else self._default_category

    def templates_for(
        self, category: ClientCategory | str | None, stage: Stage | str
    ) -> tuple[TaskTemplate, ...]:
        """Templates for a stage, in order. Empty when nothing is registered."""

        stages = self._workflows[self.resolve_category(category)]
        return stages.get(_key(stage), ())

    def stages_for(self, category: ClientCategory | str | None) -> tuple[str, ...]:
        return tuple(self._workflows[self.resolve_category(category)])

    def follow_up_template_for(self, tag: str) -> TaskTemplate | None:
        return self._follow_ups.get(tag)

    def follow_up_tags(self) -> tuple[str, ...]:
        return tuple(self._follow_ups)

    def _all_templates(self) -> list[TaskTemplate]:
        out: list[TaskTemplate] = []
        for stages in self._workflows.values():
            for templates in stages.values():
                out.extend(templates)
        out.extend(self._follow_ups.values())
        return out

    def unresolved_triggers(self) -> set[str]:
        """Trigger tags referenced by some template but absent from the follow-up catalog."""

        referenced = {tag for t in self._all_templates() for tag in t.completion_triggers}
        return {tag for tag in referenced if tag not in self._follow_ups}

    def find_trigger_cycles(self) -> list[list[str]]:
        """Find cycles in the graph tag -> follow-up template -> its trigger tags.

        Uses iterative DFS with colour marking. Each cycle is returned as the
        list of tags along it, starting and ending with the same tag.
        """

        adjacency: dict[str, list[str]] = {
            tag: sorted(set(template.completion_triggers) & set(self._follow_ups))
            for tag, template in self._follow_ups.items()
        }

        white, grey, black = 0, 1, 2
        colour: dict[str, int] = {tag: white for tag in adjacency}
        cycles: list[list[str]] = []

        for start in sorted(adjacency):
            if colour[start] != white:
                continue
            colour[start] = grey
            stack: list[tuple[str, int]] = [(start, 0)]
            while stack:
                node, idx = stack[-1]
                neighbours = adjacency[node]
                if idx < len(neighbours):
                    stack[-1] = (node, idx + 1)
                    nxt = neighbours[idx]
                    if colour[nxt] == grey:
                        path = [n for n, _ in stack]
                        cycles.append(path[path.index(nxt) :] + [nxt])
                    elif colour[nxt] == white:
                        colour[nxt] = grey
                        stack.append((nxt, 0))
                else:
                    colour[node] = black
                    stack.pop()

        return cycles

    def validate(self, *, strict_triggers: bool = False) -> None:
        """Check the catalog at load time.

        Trigger cycles are always rejected. Unresolved trigger tags are
        rejected when ``strict_triggers`` is set and logged otherwise; at
        runtime they are skipped.
        """

        cycles = self.find_trigger_cycles()
        if cycles:
            rendered = "; ".join(" -> ".join(c) for c in cycles)
            raise CatalogError(f"Completion trigger cycle(s) in follow-up catalog: {rendered}")

        unresolved = sorted(self.unresolved_triggers())
        if not unresolved:
            return
        if strict_triggers:
            raise CatalogError(f"Unresolved completion triggers: {', '.join(unresolved)}")
        logger.warning(
            "Template catalog references completion triggers with no follow-up template",
            extra={"tags": unresolved},
        )
