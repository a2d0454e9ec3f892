from __future__ import annotations

from typing import Optional

from ..core.exceptions import AuthenticationError, NotFoundError
from .repository import EmployeeRepository


class EmployeeResolver:
    """Use case: translate the authenticated user into an employee id."""

    def __init__(self, employees: EmployeeRepository):
        self._employees = employees

    def resolve(self, user_id: Optional[int]) -> int:
        if not user_id:
            raise AuthenticationError("Unauthorized")
        me = self._employees.get_by_user_id(int(user_id))
        if not me:
            raise NotFoundError("Employee not found")
        return me.employee_id
