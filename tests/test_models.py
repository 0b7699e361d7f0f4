from datetime import UTC, datetime, timedelta

import pytest

from bugzilla_query.errors import BugzillaDecodeError
from bugzilla_query.models import Bug, Person, bug_from_json, parse_bug_ids


def test_parse_bug_ids_drops_non_numeric():
    assert parse_bug_ids([123, 456, "bad"]) == (123, 456)


@pytest.mark.parametrize("raw", [None, "", {"ids": [1]}, 42])
def test_parse_bug_ids_non_list_is_empty(raw):
    assert parse_bug_ids(raw) == ()


def test_parse_bug_ids_truncates_floats_and_skips_bools():
    assert parse_bug_ids([1.0, 2.9, True, None, 3]) == (1, 2, 3)


def test_parse_bug_ids_skips_non_finite_floats():
    assert parse_bug_ids([5, float("inf")]) == (5,)
    assert parse_bug_ids([float("nan"), 7, float("-inf")]) == (7,)


def test_bug_from_json_decodes_fields(sample_bug):
    bug = bug_from_json(sample_bug)

    assert bug.id == 886096
    assert bug.alias is None
    assert bug.product == "Core"
    assert bug.keywords == ("crash", "regression")
    assert bug.creator == Person(name="alice@example.com", real_name="Alice")
    assert bug.creation_time == datetime(2013, 6, 14, 9, 30, tzinfo=UTC)
    assert bug.last_change_time == datetime(2013, 6, 20, 17, 5, 12, tzinfo=UTC)
    assert bug.comments[0].id == 7531
    assert bug.comments[0].text == "STR: open the page"
    assert bug.comments[0].is_private is False
    change = bug.history[0].changes[0]
    assert (change.field_name, change.added, change.removed) == ("status", "NEW", "UNCONFIRMED")


def test_assignee_is_read_from_assigned_to(sample_bug):
    bug = bug_from_json(sample_bug)
    assert bug.assigned_to == Person(name="bob@example.com", real_name="Bob")
    assert bug.assigned_to != bug.creator


def test_person_accepts_plain_login(sample_bug):
    sample_bug["assigned_to"] = "nobody@mozilla.org"
    assert bug_from_json(sample_bug).assigned_to == Person(name="nobody@mozilla.org", real_name=None)


def test_alias_list_uses_first_entry(sample_bug):
    sample_bug["alias"] = ["necko-crash", "other"]
    assert bug_from_json(sample_bug).alias == "necko-crash"


def test_relations_empty_until_postprocess(sample_bug):
    bug = bug_from_json(sample_bug)
    assert bug.blocks == ()

    bug.postprocess()
    assert bug.blocks == (123, 456)
    assert bug.depends_on == ()


def test_postprocess_is_idempotent(sample_bug):
    sample_bug["depends_on"] = [9, 8]
    bug = bug_from_json(sample_bug).postprocess()
    bug.postprocess()
    assert bug.blocks == (123, 456)
    assert bug.depends_on == (9, 8)


def test_raw_relations_are_hidden_from_repr(sample_bug):
    bug = bug_from_json(sample_bug).postprocess()
    assert "_raw_blocks" not in repr(bug)
    assert "'bad'" not in repr(bug)


def test_missing_fields_are_tolerated():
    bug = bug_from_json({"id": 5, "extra": {"ignored": True}}).postprocess()
    assert bug.id == 5
    assert bug.summary == ""
    assert bug.creation_time is None
    assert bug.blocks == ()
    assert bug.comments == ()


def test_bug_is_read_only():
    bug = Bug(id=1)
    with pytest.raises(AttributeError):
        bug.summary = "changed"


@pytest.mark.parametrize(
    "override",
    [
        {"id": "1"},
        {"summary": 12},
        {"creation_time": "yesterday"},
        {"keywords": "crash"},
        {"comments": [17]},
        {"comments": [{"id": 1, "is_private": "false"}]},
        {"comments": [{"id": 1, "is_private": 0}]},
    ],
)
def test_type_mismatch_raises_decode_error(sample_bug, override):
    sample_bug.update(override)
    with pytest.raises(BugzillaDecodeError):
        bug_from_json(sample_bug)


def test_non_object_bug_raises_decode_error():
    with pytest.raises(BugzillaDecodeError):
        bug_from_json([1, 2])


def test_age_is_measured_from_creation_time():
    created = datetime(2024, 1, 1, tzinfo=UTC)
    bug = Bug(id=1, creation_time=created)
    assert bug.age(now=created + timedelta(days=3)) == timedelta(days=3)


def test_age_is_recomputed_each_call():
    bug = Bug(id=1, creation_time=datetime.now(UTC) - timedelta(hours=1))
    first = bug.age()
    second = bug.age()
    assert first is not None and second is not None
    assert second >= first >= timedelta(hours=1)


def test_age_unknown_without_creation_time():
    assert Bug(id=1).age() is None


def test_comment_privacy_defaults_to_public(sample_bug):
    sample_bug["comments"] = [{"id": 1}, {"id": 2, "is_private": None}, {"id": 3, "is_private": True}]
    assert [c.is_private for c in bug_from_json(sample_bug).comments] == [False, False, True]
