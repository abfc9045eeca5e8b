"""Project helpers."""

from __future__ import annotations

from collections.abc import Sequence

from ..config import ApiResult
from .base import ResourceBase


class ProjectsResource(ResourceBase):
    """Work with ZenTao projects."""

    def list(
        self,
        status: str = "undone",
        project_id: int = 0,
        order_by: str = "order_desc",
        product_id: int = 0,
        rec_total: int = 0,
        rec_per_page: int = 10,
        page_id: int = 1,
        extra_fields: Sequence[str] | None = None,
    ) -> ApiResult:
        return self._get(
            "project",
            "all",
            name="getProjectList",
            params=[
                ("status", status),
                ("projectID", project_id),
                ("orderBy", order_by),
                ("productID", product_id),
                ("recTotal", rec_total),
                ("recPerPage", rec_per_page),
                ("pageID", page_id),
            ],
            fields=("title", "projects", "projectStats", "teamMembers", "users"),
            extra_fields=extra_fields,
        )

    def get(self, project_id: int, extra_fields: Sequence[str] | None = None) -> ApiResult:
        return self._get(
            "project",
            "view",
            name="getProject",
            params=[("projectID", project_id)],
            fields=("title", "products", "project", "teamMembers", "dynamics"),
            extra_fields=extra_fields,
        )

    def create_params(self, extra_fields: Sequence[str] | None = None) -> ApiResult:
        return self._get(
            "project",
            "create",
            name="getProjectCreateParams",
            fields=("title", "projects", "groups", "allProducts"),
            extra_fields=extra_fields,
        )

    def add(
        self,
        name: str,
        code: str,
        begin: str,
        end: str,
        days: int = 0,
        team: str | None = None,
        type: str = "sprint",
        desc: str | None = None,
        acl: str = "open",
        whitelist: Sequence[int] | None = None,
        products: Sequence[int] | None = None,
        plans: Sequence[int] | None = None,
    ) -> ApiResult:
        """Create a project.

        Args:
            begin: Start date, ``YYYY-MM-DD``.
            end: End date, ``YYYY-MM-DD``.
            type: ``sprint``, ``waterfall`` or ``ops``.
            products: Linked product IDs.
            plans: Linked plan IDs, one per product.
        """
        return self._post(
            "project",
            "create",
            {
                "name": name,
                "code": code,
                "begin": begin,
                "end": end,
                "days": days,
                "team": team,
                "type": type,
                "desc": desc,
                "acl": acl,
                "whitelist": list(whitelist or ()),
                "products": list(products or [0]),
                "plans": list(plans or [0]),
                "status": "wait",
            },
            name="addProject",
        )
