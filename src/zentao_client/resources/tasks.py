"""Task helpers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date

from ..config import ApiResult
from .base import ResourceBase


class TasksResource(ResourceBase):
    """Work with project tasks."""

    def list(
        self,
        project_id: int,
        status: str = "unclosed",
        param: int = 0,
        order_by: str = "",
        rec_total: int = 0,
        rec_per_page: int = 20,
        page_id: int = 1,
        extra_fields: Sequence[str] | None = None,
    ) -> ApiResult:
        return self._get(
            "project",
            "task",
            name="getTaskList",
            params=[
                ("projectID", project_id),
                ("status", status),
                ("param", param),
                ("orderBy", order_by),
                ("recTotal", rec_total),
                ("recPerPage", rec_per_page),
                ("pageID", page_id),
            ],
            fields=("title", "projects", "project", "products", "tasks"),
            extra_fields=extra_fields,
        )

    def get(self, task_id: int, extra_fields: Sequence[str] | None = None) -> ApiResult:
        return self._get(
            "task",
            "view",
            name="getTask",
            params=[("taskID", task_id)],
            fields=("title", "task", "project", "product"),
            extra_fields=extra_fields,
        )

    def create_params(self, extra_fields: Sequence[str] | None = None) -> ApiResult:
        return self._get(
            "task",
            "create",
            name="getTaskCreateParams",
            fields=("title", "projects", "users", "stories", "moduleOptionMenu", "project"),
            extra_fields=extra_fields,
        )

    def add(
        self,
        project: int,
        name: str,
        type: str = "devel",
        module: int = 0,
        color: str | None = None,
        pri: int = 3,
        estimate: float = 0,
        desc: str | None = None,
        est_started: str | None = None,
        deadline: str | None = None,
        assigned_to: Sequence[str] | None = None,
        mailto: Sequence[str] | None = None,
    ) -> ApiResult:
        return self._post(
            "task",
            "create",
            {
                "project": project,
                "type": type,
                "name": name,
                "module": module,
                "color": color,
                "pri": pri,
                "estimate": estimate,
                "desc": desc,
                "estStarted": est_started,
                "deadline": deadline,
                "assignedTo": list(assigned_to or [""]),
                "mailto": list(mailto or [""]),
            },
            name="addTask",
        )

    def finish_params(self, task_id: int, extra_fields: Sequence[str] | None = None) -> ApiResult:
        return self._get(
            "task",
            "finish",
            name="getTaskFinishParams",
            params=[("taskID", task_id)],
            fields=("title", "users", "task", "project", "actions"),
            extra_fields=extra_fields,
        )

    def finish(
        self,
        task_id: int,
        current_consumed: float,
        consumed: float | None = None,
        assigned_to: str | None = None,
        finished_date: str | None = None,
        comment: str | None = None,
    ) -> ApiResult:
        """Mark a task as done.

        Args:
            task_id: The task ID.
            current_consumed: Hours spent in this session.
            consumed: Total hours spent; read from the task when omitted.
            finished_date: ``YYYY-MM-DD``, defaults to today.
        """
        if consumed is None:
            form = self.finish_params(task_id)
            if not form.ok:
                return form
            task = form.result.get("task") if isinstance(form.result, Mapping) else None
            consumed = task.get("consumed") if isinstance(task, Mapping) else None
            if consumed is None:
                return ApiResult(
                    status=0,
                    msg=f"Task {task_id} finish form did not include consumed hours.",
                    result=form.result,
                )
        return self._post(
            "task",
            "finish",
            {
                "currentConsumed": current_consumed,
                "consumed": consumed,
                "assignedTo": assigned_to,
                "finishedDate": finished_date or date.today().strftime("%Y-%m-%d"),
                "comment": comment,
                "status": "done",
            },
            name="finishTask",
            params=[("taskID", task_id)],
        )
