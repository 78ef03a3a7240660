"""Tests for RubricScorer."""

import pytest

from guild_consensus.rubric import (
    CriterionScoreOutOfRangeError,
    IncompleteRubricError,
    RedFlag,
    RubricCriterion,
    RubricScorer,
    RubricSubmission,
    RubricTemplate,
    UnknownCriterionError,
    UnknownRedFlagError,
)


def make_template(**overrides) -> RubricTemplate:
    """Two scored criteria (20 + 30), one unscored note, one red flag."""
    params = {
        "template_id": "general",
        "version": 2,
        "criteria": (
            RubricCriterion(id="depth", label="Depth of Reflection", max_points=20),
            RubricCriterion(id="evidence", label="Evidence", max_points=30),
            RubricCriterion(id="notes", label="Notes", max_points=1, scored=False),
        ),
        "red_flags": (RedFlag(id="ai_generated", label="AI generated", deduction=15),),
    }
    params.update(overrides)
    return RubricTemplate(**params)


def full_justifications() -> dict[str, str]:
    return {"depth": "Concrete examples", "evidence": "Links to merged work"}


class TestRubricScorer:
    """Tests for RubricScorer.score."""

    def test_sums_criteria_and_normalizes(self):
        """40 of 50 points is 80 on the vote scale."""
        scorer = RubricScorer(make_template())

        result = scorer.score(
            RubricSubmission(
                criteria_scores={"depth": 16, "evidence": 24},
                justifications=full_justifications(),
            )
        )

        assert result.raw_total == pytest.approx(40.0)
        assert result.overall_score == pytest.approx(40.0)
        assert result.normalized_score == pytest.approx(80.0)
        assert result.template_version == 2
        assert result.criteria_dict == {"depth": 16.0, "evidence": 24.0}

    def test_red_flags_are_deducted(self):
        scorer = RubricScorer(make_template())

        result = scorer.score(
            RubricSubmission(
                criteria_scores={"depth": 16, "evidence": 24},
                justifications=full_justifications(),
                red_flags=frozenset({"ai_generated"}),
            )
        )

        assert result.red_flag_deductions == pytest.approx(15.0)
        assert result.overall_score == pytest.approx(25.0)
        assert result.normalized_score == pytest.approx(50.0)

    def test_overall_clamped_at_zero(self):
        """Deductions larger than the raw total never go negative."""
        scorer = RubricScorer(make_template())

        result = scorer.score(
            RubricSubmission(
                criteria_scores={"depth": 2, "evidence": 3},
                justifications=full_justifications(),
                red_flags=frozenset({"ai_generated"}),
            )
        )

        assert result.overall_score == 0.0
        assert result.normalized_score == 0.0

    def test_overall_clamped_at_total_points(self):
        """A template total below the criteria sum caps the score."""
        scorer = RubricScorer(make_template(total_points=40))

        result = scorer.score(
            RubricSubmission(
                criteria_scores={"depth": 20, "evidence": 30},
                justifications=full_justifications(),
            )
        )

        assert result.raw_total == pytest.approx(50.0)
        assert result.overall_score == pytest.approx(40.0)
        assert result.normalized_score == pytest.approx(100.0)

    def test_missing_justification_is_incomplete(self):
        scorer = RubricScorer(make_template())

        with pytest.raises(IncompleteRubricError) as exc_info:
            scorer.score(
                RubricSubmission(
                    criteria_scores={"depth": 16, "evidence": 24},
                    justifications={"depth": "Concrete examples", "evidence": "   "},
                )
            )

        assert exc_info.value.missing == ("evidence",)

    def test_missing_required_score_is_incomplete(self):
        scorer = RubricScorer(make_template())

        with pytest.raises(IncompleteRubricError) as exc_info:
            scorer.score(
                RubricSubmission(
                    criteria_scores={"depth": 16},
                    justifications=full_justifications(),
                )
            )

        assert exc_info.value.missing == ("evidence",)

    def test_optional_criterion_may_be_skipped(self):
        template = make_template(
            criteria=(
                RubricCriterion(id="depth", label="Depth", max_points=20),
                RubricCriterion(id="bonus", label="Bonus", max_points=10, required=False),
            )
        )
        scorer = RubricScorer(template)

        result = scorer.score(
            RubricSubmission(
                criteria_scores={"depth": 15},
                justifications={"depth": "Solid"},
            )
        )

        assert result.overall_score == pytest.approx(15.0)
        assert result.normalized_score == pytest.approx(50.0)

    def test_unscored_criterion_needs_no_justification(self):
        scorer = RubricScorer(make_template())

        result = scorer.score(
            RubricSubmission(
                criteria_scores={"depth": 10, "evidence": 15, "notes": 1},
                justifications=full_justifications(),
            )
        )

        assert "notes" not in result.criteria_dict
        assert result.raw_total == pytest.approx(25.0)

    def test_unknown_criterion_rejected(self):
        scorer = RubricScorer(make_template())

        with pytest.raises(UnknownCriterionError):
            scorer.score(
                RubricSubmission(
                    criteria_scores={"depth": 10, "evidence": 10, "charisma": 5},
                    justifications=full_justifications(),
                )
            )

    def test_score_above_max_rejected(self):
        scorer = RubricScorer(make_template())

        with pytest.raises(CriterionScoreOutOfRangeError):
            scorer.score(
                RubricSubmission(
                    criteria_scores={"depth": 21, "evidence": 10},
                    justifications=full_justifications(),
                )
            )

    def test_negative_score_rejected(self):
        scorer = RubricScorer(make_template())

        with pytest.raises(CriterionScoreOutOfRangeError):
            scorer.score(
                RubricSubmission(
                    criteria_scores={"depth": -1, "evidence": 10},
                    justifications=full_justifications(),
                )
            )

    def test_unknown_red_flag_rejected(self):
        scorer = RubricScorer(make_template())

        with pytest.raises(UnknownRedFlagError):
            scorer.score(
                RubricSubmission(
                    criteria_scores={"depth": 10, "evidence": 10},
                    justifications=full_justifications(),
                    red_flags=frozenset({"plagiarism"}),
                )
            )
