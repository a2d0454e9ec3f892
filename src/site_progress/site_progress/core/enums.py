from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles stored in the session by the login layer."""

    ADMIN = "admin"
    EMPLOYEE = "karyawan"


class Method(str, Enum):
    """Survey methods whose points and depths are tracked per project."""

    SONDIR = "sondir"
    BOR = "bor"
    CPTU = "cptu"

    @property
    def label(self) -> str:
        return {
            Method.SONDIR: "Sondir",
            Method.BOR: "Bor",
            Method.CPTU: "CPTU",
        }[self]


class PaginationMode(str, Enum):
    PAGING = "paging"
    CURSOR = "cursor"
