"""Data models for rubric scoring."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import RubricTemplateError


@dataclass(frozen=True)
class RubricCriterion:
    """A single scoring criterion (e.g. "Depth of Reflection")."""

    id: str
    label: str
    max_points: float
    scored: bool = True
    required: bool = True


@dataclass(frozen=True)
class RedFlag:
    """A red flag with a fixed deduction when triggered."""

    id: str
    label: str
    deduction: float


@dataclass(frozen=True)
class InterpretationBand:
    """Maps an inclusive score range to a qualitative label."""

    min_score: float
    max_score: float
    label: str

    def contains(self, score: float) -> bool:
        return self.min_score <= score <= self.max_score


@dataclass(frozen=True)
class RubricTemplate:
    """
    Versioned, strongly-typed rubric loaded once per guild and expertise level.

    Criteria are ordered; ids must be unique across criteria and across red flags.
    """

    template_id: str
    version: int
    criteria: tuple[RubricCriterion, ...]
    red_flags: tuple[RedFlag, ...] = ()
    total_points: float | None = None
    """Rubric maximum. Defaults to the sum of scored criteria maxima."""

    interpretation_guide: tuple[InterpretationBand, ...] = ()

    def __post_init__(self) -> None:
        criterion_ids = [c.id for c in self.criteria]
        if len(set(criterion_ids)) != len(criterion_ids):
            raise RubricTemplateError(
                f"Duplicate criterion ids in template {self.template_id}"
            )
        flag_ids = [f.id for f in self.red_flags]
        if len(set(flag_ids)) != len(flag_ids):
            raise RubricTemplateError(
                f"Duplicate red flag ids in template {self.template_id}"
            )
        for criterion in self.criteria:
            if criterion.max_points <= 0:
                raise RubricTemplateError(
                    f"Criterion {criterion.id} must have positive max_points"
                )
        for flag in self.red_flags:
            if flag.deduction < 0:
                raise RubricTemplateError(
                    f"Red flag {flag.id} must have a non-negative deduction"
                )
        if self.rubric_max <= 0:
            raise RubricTemplateError(
                f"Template {self.template_id} has no scored points"
            )

    @property
    def rubric_max(self) -> float:
        """Maximum overall score."""
        if self.total_points is not None:
            return self.total_points
        return sum(c.max_points for c in self.criteria if c.scored)

    @property
    def scored_criteria(self) -> tuple[RubricCriterion, ...]:
        return tuple(c for c in self.criteria if c.scored)

    def get_criterion(self, criterion_id: str) -> RubricCriterion | None:
        for criterion in self.criteria:
            if criterion.id == criterion_id:
                return criterion
        return None

    def get_red_flag(self, flag_id: str) -> RedFlag | None:
        for flag in self.red_flags:
            if flag.id == flag_id:
                return flag
        return None

    def interpret(self, score: float) -> str | None:
        """Qualitative label for a score, if the guide covers it."""
        for band in self.interpretation_guide:
            if band.contains(score):
                return band.label
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RubricTemplate:
        """
        Build a template from a plain mapping (e.g. parsed YAML).

        Expected format:
        {
            "id": "general-v1",
            "version": 1,
            "total_points": 100,          # optional
            "criteria": [{"id": "depth", "label": "Depth", "max_points": 20}],
            "red_flags": [{"id": "ai", "label": "AI generated", "deduction": 15}],
            "interpretation_guide": [{"min": 80, "max": 100, "label": "Strong"}]
        }
        """
        try:
            criteria = tuple(
                RubricCriterion(
                    id=str(c["id"]),
                    label=str(c.get("label", c["id"])),
                    max_points=float(c["max_points"]),
                    scored=bool(c.get("scored", True)),
                    required=bool(c.get("required", True)),
                )
                for c in data.get("criteria", [])
            )
            red_flags = tuple(
                RedFlag(
                    id=str(f["id"]),
                    label=str(f.get("label", f["id"])),
                    deduction=float(f["deduction"]),
                )
                for f in data.get("red_flags", [])
            )
            guide = tuple(
                InterpretationBand(
                    min_score=float(b["min"]),
                    max_score=float(b["max"]),
                    label=str(b["label"]),
                )
                for b in data.get("interpretation_guide", [])
            )
            total = data.get("total_points")
            return cls(
                template_id=str(data["id"]),
                version=int(data.get("version", 1)),
                criteria=criteria,
                red_flags=red_flags,
                total_points=float(total) if total is not None else None,
                interpretation_guide=guide,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RubricTemplateError(f"Invalid rubric template: {e}") from e


@dataclass(frozen=True)
class RubricSubmission:
    """A reviewer's raw rubric input."""

    criteria_scores: Mapping[str, float]
    justifications: Mapping[str, str] = field(default_factory=dict)
    red_flags: frozenset[str] = frozenset()


@dataclass(frozen=True)
class RubricScore:
    """Result of scoring a rubric submission."""

    template_id: str
    template_version: int
    criteria_scores: tuple[tuple[str, float], ...]
    """(criterion id, points) in template order."""

    red_flag_deductions: float
    raw_total: float
    overall_score: float
    """clamp(raw_total - red_flag_deductions, 0, rubric_max)."""

    normalized_score: float
    """overall_score on the 0-100 vote scale."""

    @property
    def criteria_dict(self) -> dict[str, float]:
        return dict(self.criteria_scores)
