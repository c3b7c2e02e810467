"""Unit tests for extracting suggestions from model output."""

import pytest

from subject_analyzer.services.json_extractor import extract_suggestions, fallback_suggestions


@pytest.mark.unit
class TestExtractSuggestions:
    """Test tolerant parsing of untrusted model text."""

    def test_plain_json(self):
        result = extract_suggestions('{"suggestions": ["A", "B"], "insight": "Be specific."}')

        assert result.success
        assert result.data.suggestions == ["A", "B"]
        assert result.data.insight == "Be specific."

    def test_fenced_block_with_prose(self):
        """Test a markdown fence is preferred over surrounding text."""
        text = (
            "Sure! Here are my ideas {not json}:\n"
            "```json\n"
            '{"suggestions": ["Only today: 50% off"], "insight": "Urgency works."}\n'
            "```\n"
            "Good luck!"
        )

        result = extract_suggestions(text)

        assert result.success
        assert result.data.suggestions == ["Only today: 50% off"]

    def test_embedded_object(self):
        text = 'Result: {"suggestions": ["X"], "insight": "Y"} -- end'

        assert extract_suggestions(text).success

    def test_skips_objects_not_matching_schema(self):
        """Test the first object that validates wins over earlier unrelated ones."""
        text = (
            'Using the format {"note": "draft", "tokens": {"used": 12}} as asked, '
            'my answer is {"suggestions": ["Last call: 50% off"], "insight": "Urgency"}.'
        )

        result = extract_suggestions(text)

        assert result.success
        assert result.data.suggestions == ["Last call: 50% off"]

    def test_reports_schema_mismatch_over_parse_error(self):
        result = extract_suggestions('{broken json: [} then {"suggestions": []}')

        assert not result.success
        assert result.error.startswith("Schema mismatch")

    def test_repairs_common_slips(self):
        """Test trailing commas and bare keys are tolerated."""
        result = extract_suggestions('{suggestions: ["A", "B",], insight: "Shorter is better",}')

        assert result.success
        assert result.data.suggestions == ["A", "B"]

    def test_strips_suggestion_whitespace(self):
        result = extract_suggestions('{"suggestions": ["  padded  "], "insight": "x"}')

        assert result.data.suggestions == ["padded"]

    @pytest.mark.parametrize("text,error", [
        (None, "Empty response"),
        ("   ", "Empty response"),
        ("I cannot help with that.", "No JSON object found"),
        ('{"suggestions": [unclosed}', "JSON object could not be parsed"),
    ])
    def test_unusable_text(self, text, error):
        result = extract_suggestions(text)

        assert not result.success
        assert result.data is None
        assert result.error == error

    @pytest.mark.parametrize("text", [
        '{"suggestions": [], "insight": "x"}',
        '{"suggestions": ["A"], "insight": ""}',
        '{"suggestions": "A", "insight": "x"}',
        '{"suggestions": ["A", 3], "insight": "x"}',
        '{"suggestions": ["A", "   "], "insight": "x"}',
        '{"insight": "x"}',
    ])
    def test_schema_mismatch(self, text):
        """Test anything but a non-empty list of strings plus an insight is rejected."""
        result = extract_suggestions(text)

        assert not result.success
        assert result.error.startswith("Schema mismatch")


@pytest.mark.unit
def test_fallback_suggestions():
    assert fallback_suggestions("Big sale") == [
        "Enhanced: Big sale",
        "New: Big sale - Limited Time",
        "Improved: Big sale - Don't Miss Out",
    ]
