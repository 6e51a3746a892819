from datetime import datetime

import pytest

from researchhub.services import matching_service
from researchhub.services.matching_service import recommend, parse_deadline, MAX_RECOMMENDATIONS

NOW = datetime(2025, 6, 1)


def _ids(results):
    return [r.project.project_id for r in results]


def test_applied_projects_are_excluded(ml_student, ml_project):
    projects = [ml_project(project_id=i) for i in (1, 2, 3)]
    results = recommend(ml_student, projects, applied_project_ids={2}, now=NOW)
    assert _ids(results) == [1, 3]


def test_past_deadline_is_excluded(ml_student, ml_project):
    projects = [ml_project(project_id=1, deadline="2000-01-01"), ml_project(project_id=2)]
    assert _ids(recommend(ml_student, projects, now=NOW)) == [2]


def test_unparseable_deadline_is_kept(ml_student, ml_project):
    projects = [ml_project(project_id=1, deadline="not-a-date")]
    assert _ids(recommend(ml_student, projects, now=NOW)) == [1]


def test_unpadded_deadline_is_kept(ml_student, ml_project):
    projects = [ml_project(project_id=1, deadline="2020-1-5"), ml_project(project_id=2, deadline="5/3/2020")]
    assert _ids(recommend(ml_student, projects, now=NOW)) == [1, 2]


def test_future_deadline_is_kept(ml_student, ml_project):
    projects = [ml_project(project_id=1, deadline="31/12/2030")]
    assert _ids(recommend(ml_student, projects, now=NOW)) == [1]


def test_inactive_and_own_projects_are_excluded(ml_student, ml_project):
    projects = [
        ml_project(project_id=1, is_active=False),
        ml_project(project_id=2, creator_id=ml_student.user_id),
        ml_project(project_id=3),
    ]
    assert _ids(recommend(ml_student, projects, now=NOW)) == [3]


def test_weak_matches_are_dropped(ml_student, make_project):
    unrelated = make_project(project_id=1, tags=["pottery"], long_desc="Glazing techniques for ceramics")
    assert recommend(ml_student, [unrelated], now=NOW) == []


def test_results_are_capped_and_sorted(monkeypatch, ml_student, make_project):
    scores = {i: float(20 + (i * 7) % 31) for i in range(1, 31)}
    monkeypatch.setattr(
        matching_service, "calculate_match_score",
        lambda student, project, *args: (scores[project.project_id], ["x"])
    )

    results = recommend(ml_student, [make_project(project_id=i) for i in scores], now=NOW)

    assert len(results) == MAX_RECOMMENDATIONS
    values = [r.match_score for r in results]
    assert values == sorted(values, reverse=True)
    assert values[0] == max(scores.values())


def test_ties_keep_input_order(monkeypatch, ml_student, make_project):
    monkeypatch.setattr(
        matching_service, "calculate_match_score",
        lambda student, project, *args: (55.0, ["x"])
    )
    projects = [make_project(project_id=7), make_project(project_id=3)]

    results = recommend(ml_student, projects, now=NOW)

    assert _ids(results) == [7, 3]
    assert [r.match_score for r in results] == [55.0, 55.0]


def test_results_carry_reasons(ml_student, ml_project):
    [result] = recommend(ml_student, [ml_project()], now=NOW)
    assert result.match_score == 51.3
    assert "Multiple matching skills" in result.match_reasons


@pytest.mark.parametrize("raw, expected", [
    ("2025-03-04", datetime(2025, 3, 4)),
    ("04/03/2025", datetime(2025, 3, 4)),
    ("03-04-2025", datetime(2025, 3, 4)),
    ("not-a-date", None),
    ("2020-1-5", None),
    ("5/3/2020", None),
    ("3-4-2020", None),
    ("2025-03-04T10:00:00", None),
    ("", None),
    (None, None),
])
def test_parse_deadline(raw, expected):
    assert parse_deadline(raw) == expected
