"""Department helpers."""

from __future__ import annotations

from collections.abc import Sequence

from ..config import ApiResult
from .base import ResourceBase, reload_means_success


class DeptsResource(ResourceBase):
    """Browse and extend the department tree."""

    def list(self, dept_id: int = 0, extra_fields: Sequence[str] | None = None) -> ApiResult:
        """List the children of a department (``0`` for the root).

        Args:
            dept_id: The parent department ID.
            extra_fields: Additional result fields to keep, e.g. ``["sons"]``.
        """
        return self._get(
            "dept",
            "browse",
            name="getDeptList",
            params=[("deptID", dept_id)],
            fields=("title", "deptID", "parentDepts", "sons", "tree"),
            extra_fields=extra_fields,
        )

    def add(self, depts: Sequence[str], parent_dept_id: int = 0) -> ApiResult:
        """Create several child departments at once.

        Args:
            depts: Names of the new departments.
            parent_dept_id: The parent department ID.
        """
        return self._post(
            "dept",
            "manageChild",
            {"parentDeptID": parent_dept_id, "depts": list(depts)},
            name="addDept",
            result_converter=reload_means_success,
        )
