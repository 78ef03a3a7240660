"""Tests for rubric template models."""

import pytest

from guild_consensus.rubric import (
    RedFlag,
    RubricCriterion,
    RubricTemplate,
    RubricTemplateError,
)


class TestRubricTemplate:
    """Tests for RubricTemplate validation and helpers."""

    def test_rubric_max_defaults_to_scored_sum(self):
        template = RubricTemplate(
            template_id="t",
            version=1,
            criteria=(
                RubricCriterion(id="a", label="A", max_points=10),
                RubricCriterion(id="b", label="B", max_points=15),
                RubricCriterion(id="c", label="C", max_points=99, scored=False),
            ),
        )

        assert template.rubric_max == 25
        assert [c.id for c in template.scored_criteria] == ["a", "b"]

    def test_duplicate_criterion_ids_rejected(self):
        with pytest.raises(RubricTemplateError, match="Duplicate criterion"):
            RubricTemplate(
                template_id="t",
                version=1,
                criteria=(
                    RubricCriterion(id="a", label="A", max_points=10),
                    RubricCriterion(id="a", label="A again", max_points=5),
                ),
            )

    def test_negative_deduction_rejected(self):
        with pytest.raises(RubricTemplateError):
            RubricTemplate(
                template_id="t",
                version=1,
                criteria=(RubricCriterion(id="a", label="A", max_points=10),),
                red_flags=(RedFlag(id="x", label="X", deduction=-1),),
            )

    def test_template_without_scored_points_rejected(self):
        with pytest.raises(RubricTemplateError, match="no scored points"):
            RubricTemplate(
                template_id="t",
                version=1,
                criteria=(RubricCriterion(id="a", label="A", max_points=10, scored=False),),
            )


class TestRubricTemplateFromDict:
    """Tests for RubricTemplate.from_dict."""

    def test_parses_full_document(self):
        template = RubricTemplate.from_dict(
            {
                "id": "expert",
                "version": 3,
                "total_points": 100,
                "criteria": [
                    {"id": "depth", "label": "Depth", "max_points": 60},
                    {"id": "clarity", "max_points": 40, "required": False},
                ],
                "red_flags": [{"id": "ai", "label": "AI generated", "deduction": 15}],
                "interpretation_guide": [
                    {"min": 80, "max": 100, "label": "Strong"},
                    {"min": 0, "max": 79.99, "label": "Needs work"},
                ],
            }
        )

        assert template.template_id == "expert"
        assert template.version == 3
        assert template.rubric_max == 100
        assert template.get_criterion("clarity").label == "clarity"
        assert template.get_criterion("clarity").required is False
        assert template.get_red_flag("ai").deduction == 15
        assert template.interpret(85) == "Strong"
        assert template.interpret(50) == "Needs work"

    def test_missing_max_points_raises(self):
        with pytest.raises(RubricTemplateError, match="Invalid rubric template"):
            RubricTemplate.from_dict({"id": "bad", "criteria": [{"id": "depth"}]})

    def test_missing_id_raises(self):
        with pytest.raises(RubricTemplateError):
            RubricTemplate.from_dict({"criteria": []})
