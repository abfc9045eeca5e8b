"""Resource-specific convenience wrappers."""
from .bugs import BugsResource
from .depts import DeptsResource
from .products import ProductsResource
from .projects import ProjectsResource
from .tasks import TasksResource
from .users import UsersResource

__all__ = [
    "DeptsResource",
    "UsersResource",
    "ProductsResource",
    "ProjectsResource",
    "TasksResource",
    "BugsResource",
]
