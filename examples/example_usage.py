"""Example: drive the service layer directly (no Flask).

Controllers are a thin layer; the ledger rules live in the services.
"""

import importlib

from config import get_settings_module

from src.site_progress.site_progress.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    view = container.daily_progress_service.upsert(
        user_id=2,
        project_id=1,
        local_date="2024-01-10",
        payload={"notes": "S-01 and S-02 done", "items": [{"method": "sondir", "points_done": 2, "depth_reached": 18.4}]},
    )
    print(view.to_dict())

    page = container.daily_progress_service.list_reports(user_id=2, project_id=1, author="me")
    print([r.local_date for r in page.items])


if __name__ == "__main__":
    main()
