import base64

import pytest

from teachassist.services.assistant.assessment import (
    assessment_payload,
    parse_assessment,
    render_assessment,
    validate_image,
)
from teachassist.services.assistant.models import CriteriaAssessment, RawAssessment
from teachassist.services.assistant.prompts import assessment_prompt_for

IMAGE_TYPES = ("image/jpeg", "image/png")


def test_parses_fenced_json():
    message = '```json\n{"assessments": [{"criterion": "Spacing", "percentage": 75, "evidence": "Even gaps."}]}\n```'
    result = parse_assessment(message)
    assert isinstance(result, CriteriaAssessment)
    assert result.assessments[0].criterion == "Spacing"
    assert assessment_payload(result) == {
        "assessments": [{"criterion": "Spacing", "percentage": 75, "evidence": "Even gaps."}]
    }


def test_bare_list_is_accepted():
    result = parse_assessment('[{"criterion": "Slant", "percentage": 50, "evidence": "Varies."}]')
    assert render_assessment(result) == "Slant: 50%\nVaries."


@pytest.mark.parametrize(
    "message",
    [
        "The handwriting is neat overall.",
        '{"assessments": []}',
        '{"assessments": [{"criterion": "Size", "percentage": 140, "evidence": "?"}]}',
    ],
)
def test_falls_back_to_raw_text(message):
    result = parse_assessment(message)
    assert isinstance(result, RawAssessment)
    assert render_assessment(result) == message
    assert assessment_payload(result) == {"rawResponse": message}


def test_validate_image_limits():
    small = base64.b64encode(b"x" * 10).decode()
    validate_image(small, "image/png", allowed_types=IMAGE_TYPES, max_bytes=10)

    with pytest.raises(ValueError, match="smaller than"):
        validate_image(base64.b64encode(b"x" * 11).decode(), "image/png", allowed_types=IMAGE_TYPES, max_bytes=10)
    with pytest.raises(ValueError, match="Unsupported image type"):
        validate_image(small, "image/gif", allowed_types=IMAGE_TYPES, max_bytes=10)
    with pytest.raises(ValueError, match="base64"):
        validate_image("not base64!!", "image/png", allowed_types=IMAGE_TYPES, max_bytes=10)


def test_assessment_prompt_names_year_level():
    prompt = assessment_prompt_for("Year5")
    assert "Year 5" in prompt
    assert '{"assessments": [{"criterion": "Letter formation"' in prompt
