"""User helpers."""

from __future__ import annotations

import hashlib
from collections.abc import Mapping, Sequence
from typing import Any

from ..config import ApiResult
from .base import ResourceBase, reload_means_success


def _md5(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


class UsersResource(ResourceBase):
    """List and create user accounts."""

    def list(
        self,
        dept_id: int = 0,
        order_by: str = "id",
        rec_total: int = 0,
        rec_per_page: int = 20,
        page_id: int = 1,
        extra_fields: Sequence[str] | None = None,
    ) -> ApiResult:
        return self._get(
            "company",
            "browse",
            name="getUserList",
            params=[
                ("param", dept_id),
                ("type", "bydept"),
                ("orderBy", order_by),
                ("recTotal", rec_total),
                ("recPerPage", rec_per_page),
                ("pageID", page_id),
            ],
            fields=("title", "users"),
            extra_fields=extra_fields,
        )

    def create_params(self, extra_fields: Sequence[str] | None = None) -> ApiResult:
        return self._get(
            "user",
            "create",
            name="getUserCreateParams",
            fields=("title", "depts", "groupList", "roleGroup"),
            extra_fields=extra_fields,
        )

    def add(
        self,
        account: str,
        password: str,
        realname: str,
        dept: int = 0,
        join: str | None = None,
        role: str | None = None,
        group: int | None = None,
        email: str | None = None,
        commiter: str | None = None,
        gender: str | None = None,
    ) -> ApiResult:
        """Create a user account.

        The create form expects passwords hashed with the per-form ``rand``
        value, and the caller's own password as ``verifyPassword``.

        Args:
            account: Login name of the new user.
            password: Plain-text password of the new user.
            realname: Display name.
            dept: Department ID.
            gender: ``"m"`` or ``"f"``.
        """
        form = self.create_params(extra_fields=["rand"])
        if not form.ok:
            return form
        rand = form.result.get("rand") if isinstance(form.result, Mapping) else None
        if rand is None:
            return ApiResult(
                status=0,
                msg="User create form did not include a rand value.",
                result=form.result,
            )
        hashed = _md5(f"{password}{rand}")
        data: dict[str, Any] = {
            "dept": dept,
            "account": account,
            "password1": hashed,
            "password2": hashed,
            "realname": realname,
            "join": join,
            "role": role,
            "group": group,
            "email": email,
            "commiter": commiter,
            "passwordStrength": 1,
            "verifyPassword": _md5(f"{_md5(self._client.password)}{rand}"),
        }
        if gender:
            data["gender"] = gender
        return self._post("user", "create", data, name="addUser", result_converter=reload_means_success)
