"""Tests for OutputValidator."""

import pytest

from scheme_match.exceptions import ContractViolation
from scheme_match.models import SuggestionResult
from scheme_match.orchestration import OutputValidator


@pytest.fixture
def validator():
    return OutputValidator()


@pytest.fixture
def working_set(sample_schemes):
    return {record.id: record for record in sample_schemes}


def _suggest(record, reason="Supports cultivation of sugarcane on 4.5 acres of land"):
    return SuggestionResult(scheme_name=record.name, scheme_id=record.id, reason=reason)


class TestLength:
    """Tests for the size bound."""

    @pytest.mark.parametrize("count", [2, 6])
    def test_out_of_range_rejected(self, validator, sample_schemes, working_set, count):
        """2-item and 6-item lists are rejected with a length violation."""
        suggestions = [_suggest(r) for r in sample_schemes[:count]]
        report = validator.validate(suggestions, working_set)

        assert not report.accepted
        assert report.rules == ["length"]

    @pytest.mark.parametrize("count", [3, 4, 5])
    def test_in_range_accepted(self, validator, sample_schemes, working_set, count):
        suggestions = [_suggest(r) for r in sample_schemes[:count]]
        assert validator.validate(suggestions, working_set).accepted

    def test_empty_list(self, validator, working_set):
        assert validator.validate([], working_set).rules == ["length"]


class TestReferences:
    """Tests for id and name checks."""

    def test_duplicate_id(self, validator, sample_schemes, working_set):
        first, second = sample_schemes[:2]
        suggestions = [_suggest(first), _suggest(second), _suggest(first)]

        report = validator.validate(suggestions, working_set)

        assert report.rules == ["duplicate_id"]
        assert report.violations[0].index == 2

    def test_unknown_id(self, validator, sample_schemes, working_set):
        ghost = SuggestionResult("Ghost Yojana", "00000000-0000-4000-8000-000000000000", "Fits the land holding")
        suggestions = [_suggest(r) for r in sample_schemes[:2]] + [ghost]

        report = validator.validate(suggestions, working_set)

        assert report.rules == ["unknown_id"]
        assert report.violations[0].scheme_id == ghost.scheme_id

    def test_name_must_match_exactly(self, validator, sample_schemes, working_set):
        record = sample_schemes[0]
        renamed = SuggestionResult(record.name.upper(), record.id, "Helps women in rural households")
        suggestions = [renamed] + [_suggest(r) for r in sample_schemes[1:3]]

        assert validator.validate(suggestions, working_set).rules == ["name_mismatch"]


class TestReasons:
    """Tests for justification checks."""

    def test_empty_reason(self, validator, sample_schemes, working_set):
        suggestions = [_suggest(r) for r in sample_schemes[:2]] + [_suggest(sample_schemes[2], "  ")]
        assert validator.validate(suggestions, working_set).rules == ["empty_reason"]

    def test_null_reason_is_empty(self, validator, sample_schemes, working_set):
        """A model reply with "reason": null is caught as empty, not read as text."""
        nulled = SuggestionResult.from_dict(
            {"scheme_name": sample_schemes[2].name, "scheme_id": sample_schemes[2].id, "reason": None}
        )
        suggestions = [_suggest(r) for r in sample_schemes[:2]] + [nulled]
        assert validator.validate(suggestions, working_set).rules == ["empty_reason"]

    def test_ungrounded_reason(self, validator, sample_schemes, working_set):
        suggestions = [_suggest(r) for r in sample_schemes[:2]] + [
            _suggest(sample_schemes[2], "A very popular and useful programme.")
        ]
        assert validator.validate(suggestions, working_set).rules == ["ungrounded_reason"]

    def test_profile_value_counts_as_grounding(self, validator, sample_schemes, working_set, sample_profile):
        """Naming a concrete profile value such as the district grounds the reason."""
        suggestions = [_suggest(r) for r in sample_schemes[:2]] + [
            _suggest(sample_schemes[2], "Widely used by farmers around Baramati.")
        ]
        assert not validator.validate(suggestions, working_set).accepted
        assert validator.validate(suggestions, working_set, sample_profile).accepted

    def test_keywords_match_whole_words(self, validator):
        assert validator.is_grounded("Covers the whole STATE")
        assert not validator.is_grounded("A stateless, landless-sounding pitch")


class TestEnforce:
    """Tests for enforce()."""

    def test_enforce_raises_with_rules(self, validator, sample_schemes, working_set):
        suggestions = [_suggest(sample_schemes[0]), _suggest(sample_schemes[0])]

        with pytest.raises(ContractViolation) as exc_info:
            validator.enforce(suggestions, working_set)

        assert exc_info.value.rules == ["length", "duplicate_id"]

    def test_enforce_returns_list(self, validator, sample_schemes, working_set):
        suggestions = [_suggest(r) for r in sample_schemes[:3]]
        assert validator.enforce(suggestions, working_set) == suggestions
