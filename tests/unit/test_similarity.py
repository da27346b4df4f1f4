from __future__ import annotations

import Levenshtein
import pytest

from src.matching.similarity import levenshtein_distance, normalize_header, score


def test_normalize_header_drops_case_whitespace_and_underscores():
    assert normalize_header(" Client_ID ") == "clientid"
    assert normalize_header("Max Load Per Phase") == "maxloadperphase"


@pytest.mark.parametrize("text", ["ClientID", "Skills", "a", "Preferred Phases"])
def test_score_identity_is_one(text: str):
    assert score(text, text) == 1.0


def test_score_exact_after_normalization():
    assert score("ClientID", "client_id") == 1.0
    assert score("TaskName", "Task Name") == 1.0


def test_score_containment_either_direction():
    assert score("Skills", "RequiredSkills") == 0.8
    assert score("RequiredSkills", "Skills") == 0.8


def test_score_levenshtein_branch():
    # "taskname" vs "tasknme": distance 1 over 8 chars
    assert score("TaskName", "TaskNme") == pytest.approx(0.875)


def test_score_no_overlap_clamps_to_zero():
    assert score("abc", "xyz") == 0.0


def test_score_both_empty_is_one():
    assert score("", "") == 1.0


@pytest.mark.parametrize(
    "a,b",
    [
        ("ClientID", "client"),
        ("WorkerName", "Worker_Nm"),
        ("Duration", "durations"),
        ("PriorityLevel", "prio"),
        ("AvailableSlots", "slots available"),
    ],
)
def test_score_is_symmetric(a: str, b: str):
    assert score(a, b) == score(b, a)


def test_levenshtein_distance_known_values():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("same", "same") == 0


def test_edit_distance_comes_from_levenshtein_package():
    assert levenshtein_distance is Levenshtein.distance
