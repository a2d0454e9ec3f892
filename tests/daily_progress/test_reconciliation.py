from __future__ import annotations

import random

import pytest

from conftest import completed_from_records, max_depth_from_records
from src.site_progress.site_progress.core.constants import METHODS
from src.site_progress.site_progress.core.exceptions import BoundsViolationError, ConfirmationRequiredError, NotFoundError

USERS = (2, 3)
DATES = ("2024-03-01", "2024-03-02", "2024-03-03")


def _random_items(rng: random.Random) -> list[dict]:
    return [
        {
            "method": rng.choice(METHODS).value,
            "points_done": rng.randint(0, 4),
            "depth_reached": rng.choice([0, 2.5, 5, 7.5, 10, 12.5]),
        }
        for _ in range(rng.randint(0, 3))
    ]


@pytest.mark.parametrize("seed", range(12))
def test_counters_match_surviving_records_after_random_sequences(store, service, seed):
    rng = random.Random(seed)
    store.add_project(totals={"sondir": 12, "bor": 12, "cptu": 12})

    for _ in range(60):
        user_id = rng.choice(USERS)
        local_date = rng.choice(DATES)
        try:
            if rng.random() < 0.3:
                service.delete(user_id=user_id, project_id=1, local_date=local_date)
            else:
                service.upsert(
                    user_id=user_id,
                    project_id=1,
                    local_date=local_date,
                    payload={"items": _random_items(rng)},
                    confirm_clear=rng.random() < 0.5,
                )
        except (BoundsViolationError, ConfirmationRequiredError, NotFoundError):
            pass

        project = store.projects[1]
        completed = completed_from_records(store, 1)
        depths = max_depth_from_records(store, 1)
        for m in METHODS:
            progress = project.method_progress(m)
            assert 0 <= progress.completed_points <= progress.total_points
            assert progress.completed_points == completed[m]
            # Upserts only raise the max; deletes restore it, so it never drops below the records.
            assert progress.max_depth >= depths[m]


@pytest.mark.parametrize("seed", range(6))
def test_max_depth_is_exact_once_everything_is_deleted(store, service, seed):
    rng = random.Random(seed)
    store.add_project(totals={"sondir": 50, "bor": 50, "cptu": 50})

    for user_id in USERS:
        for local_date in DATES:
            service.upsert(
                user_id=user_id,
                project_id=1,
                local_date=local_date,
                payload={"items": _random_items(rng)},
            )

    keys = [(u, d) for u in USERS for d in DATES]
    rng.shuffle(keys)
    for user_id, local_date in keys:
        service.delete(user_id=user_id, project_id=1, local_date=local_date)
        depths = max_depth_from_records(store, 1)
        for m in METHODS:
            assert store.projects[1].method_progress(m).max_depth == depths[m]

    assert store.records == {}
