from typing import Any, Dict

import pytest

from skillsync.validation import validate_feed


def valid_doc() -> Dict[str, Any]:
    return {
        "version": "1.0",
        "name": "team",
        "updated_at": "2024-01-01T00:00:00.000Z",
        "skills": [
            {
                "id": "a",
                "name": "A",
                "version": "1.0.0",
                "updated_at": "2024-01-01T00:00:00.000Z",
                "content_url": "/skills/a.md",
                "tags": ["x"],
            }
        ],
    }


def paths(result) -> set:
    return {e.path for e in result.errors}


def test_valid_document_reports_summary() -> None:
    result = validate_feed(valid_doc())
    assert result.valid is True
    assert result.errors == []
    assert result.feed == {"name": "team", "skill_count": 1, "version": "1.0"}


def test_non_object_document() -> None:
    result = validate_feed(["not", "a", "feed"])
    assert result.valid is False
    assert result.feed is None
    assert result.errors[0].message == "feed must be an object"


def test_top_level_fields() -> None:
    doc = valid_doc()
    doc["version"] = "1.0.0"
    doc["name"] = ""
    del doc["updated_at"]
    doc["skills"] = {}

    result = validate_feed(doc)

    assert result.valid is False
    assert paths(result) == {"version", "name", "updated_at", "skills"}


def test_skill_fields() -> None:
    doc = valid_doc()
    doc["skills"] = [
        {"id": "", "name": "B", "version": 1, "updated_at": "x", "content_url": "", "tags": "git"},
        "not an object",
        {"id": "c", "name": "C", "version": "", "updated_at": "", "content_url": "/c.md"},
    ]

    result = validate_feed(doc)

    assert paths(result) == {
        "skills[0].id",
        "skills[0].version",
        "skills[0].content_url",
        "skills[0].tags",
        "skills[1]",
        "skills[2].version",
    }


def test_duplicate_ids_are_reported() -> None:
    doc = valid_doc()
    doc["skills"].append(dict(doc["skills"][0]))

    result = validate_feed(doc)

    assert result.valid is False
    assert paths(result) == {"skills[1].id"}
    assert "duplicate" in result.errors[0].message


@pytest.mark.parametrize("version", ["1", "1.0.0", "1.0\n", "v1.0", "١.٠"])
def test_feed_version_must_be_major_minor(version: str) -> None:
    doc = valid_doc()
    doc["version"] = version
    result = validate_feed(doc)
    assert paths(result) == {"version"}
