"""Bug helpers."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from ..config import ApiResult
from .base import ResourceBase, fail_marker_means_failure


class BugsResource(ResourceBase):
    """Browse, report and resolve bugs."""

    def list(
        self,
        product_id: int,
        branch: int = 0,
        browse_type: str = "unclosed",
        param: int = 0,
        order_by: str = "",
        rec_total: int = 0,
        rec_per_page: int = 20,
        page_id: int = 1,
        extra_fields: Sequence[str] | None = None,
    ) -> ApiResult:
        return self._get(
            "bug",
            "browse",
            name="getBugList",
            params=[
                ("productID", product_id),
                ("branch", branch),
                ("browseType", browse_type),
                ("param", param),
                ("orderBy", order_by),
                ("recTotal", rec_total),
                ("recPerPage", rec_per_page),
                ("pageID", page_id),
            ],
            fields=(
                "title",
                "products",
                "productID",
                "productName",
                "product",
                "moduleName",
                "modules",
                "browseType",
                "bugs",
            ),
            extra_fields=extra_fields,
        )

    def get(self, bug_id: int, extra_fields: Sequence[str] | None = None) -> ApiResult:
        return self._get(
            "bug",
            "view",
            name="getBug",
            params=[("bugID", bug_id)],
            fields=("title", "bug", "productName"),
            extra_fields=extra_fields,
        )

    def create_params(self, product_id: int, extra_fields: Sequence[str] | None = None) -> ApiResult:
        return self._get(
            "bug",
            "create",
            name="getBugCreateParams",
            params=[("productID", product_id)],
            fields=(
                "title",
                "productID",
                "productName",
                "projects",
                "moduleOptionMenu",
                "users",
                "stories",
                "builds",
            ),
            extra_fields=extra_fields,
        )

    def add(
        self,
        product: int,
        title: str,
        module: int = 0,
        project: int = 0,
        opened_build: Sequence[Any] | None = None,
        assigned_to: str | None = None,
        deadline: str | None = None,
        type: str = "codeerror",
        os: str = "all",
        browser: str = "all",
        color: str | None = None,
        severity: int = 3,
        pri: int = 3,
        steps: str | None = None,
        story: int = 0,
        task: int = 0,
        keywords: str | None = None,
        mailto: Sequence[str] | None = None,
    ) -> ApiResult:
        return self._post(
            "bug",
            "create",
            {
                "product": product,
                "title": title,
                "module": module,
                "project": project,
                "openedBuild": list(opened_build or ["trunk"]),
                "assignedTo": assigned_to,
                "deadline": deadline,
                "type": type,
                "os": os,
                "browser": browser,
                "color": color,
                "severity": severity,
                "pri": pri,
                "steps": steps,
                "story": story,
                "task": task,
                "keywords": keywords,
                "mailto": list(mailto or ()),
            },
            name="addBug",
            params=[("productID", product)],
        )

    def resolve_params(self, bug_id: int, extra_fields: Sequence[str] | None = None) -> ApiResult:
        return self._get(
            "bug",
            "resolve",
            name="getBugResolveParams",
            params=[("bugID", bug_id)],
            fields=("title", "products", "bug", "users", "builds", "actions"),
            extra_fields=extra_fields,
        )

    def resolve(
        self,
        bug_id: int,
        resolution: str = "fixed",
        resolved_build: str = "trunk",
        resolved_date: str | None = None,
        assigned_to: str | None = None,
        comment: str | None = None,
        duplicate_bug: int | None = None,
        create_build: bool = False,
        build_project: int | None = None,
        build_name: str | None = None,
    ) -> ApiResult:
        """Resolve a bug.

        Args:
            bug_id: The bug ID.
            resolution: ``bydesign``, ``duplicate``, ``external``, ``fixed``,
                ``notrepro``, ``postponed`` or ``willnotfix``.
            resolved_date: ``YYYY-MM-DD HH:MM:SS``, defaults to now.
            create_build: Create ``build_name`` in ``build_project`` while resolving.
        """
        data: dict[str, Any] = {
            "resolution": resolution,
            "resolvedBuild": resolved_build,
            "resolvedDate": resolved_date or datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            "assignedTo": assigned_to,
            "comment": comment,
            "duplicateBug": duplicate_bug,
            "status": "resolved",
        }
        if create_build:
            data["createBuild"] = 1
            data["buildProject"] = build_project
            data["buildName"] = build_name
        return self._post(
            "bug",
            "resolve",
            data,
            name="resolveBug",
            params=[("bugID", bug_id)],
            result_converter=fail_marker_means_failure,
        )
