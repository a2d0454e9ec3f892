from __future__ import annotations

import pytest

from src.site_progress.site_progress.common.pagination import CursorPage, PageResult
from src.site_progress.site_progress.core.enums import Method, Role
from src.site_progress.site_progress.core.exceptions import AuthorizationError, NotFoundError, ValidationError


def test_overall_percent_rounds_half_up(store):
    project = store.add_project(totals={"sondir": 4, "bor": 4}, completed={"sondir": 1})

    assert project.overall_percent == 13
    assert store.add_project(project_id=2).overall_percent == 0


def test_get_project(store, project_service):
    store.add_project(totals={"cptu": 3}, completed={"cptu": 3})

    body = project_service.get_project(project_id=1).to_dict()

    assert body["progress"]["cptu"] == {"total_points": 3, "completed_points": 3, "max_depth": 0.0}
    assert body["overall_percent"] == 100
    with pytest.raises(NotFoundError):
        project_service.get_project(project_id=2)


def test_update_totals_requires_admin(store, project_service):
    store.add_project(totals={"sondir": 3})

    with pytest.raises(AuthorizationError):
        project_service.update_totals(current_role=Role.EMPLOYEE, project_id=1, payload={"sondir": 5})
    assert store.projects[1].method_progress(Method.SONDIR).total_points == 3


def test_update_totals_sets_only_given_methods(store, project_service):
    store.add_project(totals={"sondir": 3, "bor": 2})

    project = project_service.update_totals(current_role=Role.ADMIN, project_id=1, payload={"sondir": 8})

    assert project.method_progress(Method.SONDIR).total_points == 8
    assert project.method_progress(Method.BOR).total_points == 2


def test_update_totals_cannot_go_below_completed(store, project_service, transactions):
    store.add_project(totals={"sondir": 10, "bor": 10}, completed={"sondir": 6})

    with pytest.raises(ValidationError):
        project_service.update_totals(current_role=Role.ADMIN, project_id=1, payload={"bor": 1, "sondir": 5})

    assert store.projects[1].method_progress(Method.BOR).total_points == 10
    assert transactions.rolled_back == 1


@pytest.mark.parametrize("bad", [-1, 1.5, "x", None, True, 10**400])
def test_update_totals_rejects_non_integers(store, project_service, bad):
    store.add_project(totals={"sondir": 10})

    with pytest.raises(ValidationError):
        project_service.update_totals(current_role=Role.ADMIN, project_id=1, payload={"sondir": bad})


def _seed_projects(store):
    store.add_project(project_id=1, project_name="Tol Cisumdawu", location="Sumedang", client_name="PT Jasa")
    store.add_project(project_id=2, project_name="Bendungan Sepaku", location="Penajam", client_name="PT Air")
    store.add_project(project_id=3, project_name="Jembatan Musi", location="Palembang", client_name="PT Jasa")


def test_list_projects_paging_newest_first(store, project_service):
    _seed_projects(store)

    result = project_service.list_projects(limit=2)

    assert isinstance(result, PageResult)
    assert [p.project_id for p in result.items] == [3, 2]
    assert result.total_items == 3
    assert result.total_pages == 2


def test_list_projects_search_and_client(store, project_service):
    _seed_projects(store)

    assert [p.project_id for p in project_service.list_projects(search="sumedang").items] == [1]
    assert [p.project_id for p in project_service.list_projects(client="PT Jasa").items] == [3, 1]


def test_list_projects_cursor(store, project_service):
    _seed_projects(store)

    first = project_service.list_projects(mode="cursor", limit=2)
    assert isinstance(first, CursorPage)
    assert first.has_more
    second = project_service.list_projects(mode="cursor", limit=2, cursor=first.next_cursor)

    assert [p.project_id for p in first.items + second.items] == [3, 2, 1]
    assert second.has_more is False
    assert second.next_cursor is None


def test_list_projects_bad_cursor(store, project_service):
    with pytest.raises(ValidationError):
        project_service.list_projects(mode="cursor", cursor="yesterday|1")
