from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core.transaction import TransactionManager
from .daily_progress.mysql_daily_progress_repository import MySQLDailyProgressRepository
from .daily_progress.repository import DailyProgressRepository
from .daily_progress.service import DailyProgressService
from .database.connection import DBConfig, DatabaseConnection
from .database.mysql_base import MySQLTransactionManager
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeResolver
from .projects.mysql_project_repository import MySQLProjectRepository
from .projects.repository import ProjectRepository
from .projects.service import ProjectService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    transactions: TransactionManager

    employees_repo: EmployeeRepository
    projects_repo: ProjectRepository
    daily_progress_repo: DailyProgressRepository

    employee_resolver: EmployeeResolver
    project_service: ProjectService
    daily_progress_service: DailyProgressService


def wire(
    *,
    transactions: TransactionManager,
    employees_repo: EmployeeRepository,
    projects_repo: ProjectRepository,
    daily_progress_repo: DailyProgressRepository,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    employee_resolver = EmployeeResolver(employees_repo)
    project_service = ProjectService(projects_repo, transactions)
    daily_progress_service = DailyProgressService(
        daily_progress_repo,
        projects_repo,
        employee_resolver,
        transactions,
    )

    return Container(
        conn=conn,
        transactions=transactions,
        employees_repo=employees_repo,
        projects_repo=projects_repo,
        daily_progress_repo=daily_progress_repo,
        employee_resolver=employee_resolver,
        project_service=project_service,
        daily_progress_service=daily_progress_service,
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire(
        conn=conn,
        transactions=MySQLTransactionManager(conn),
        employees_repo=MySQLEmployeeRepository(conn),
        projects_repo=MySQLProjectRepository(conn),
        daily_progress_repo=MySQLDailyProgressRepository(conn),
    )
