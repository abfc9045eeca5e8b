"""Product helpers."""

from __future__ import annotations

from collections.abc import Sequence

from ..config import ApiResult
from .base import ResourceBase


class ProductsResource(ResourceBase):
    """Work with ZenTao products."""

    def list(
        self,
        product_id: int = 0,
        line: int = 0,
        status: str = "noclosed",
        order_by: str = "order_desc",
        rec_total: int = 0,
        rec_per_page: int = 10,
        page_id: int = 1,
        extra_fields: Sequence[str] | None = None,
    ) -> ApiResult:
        """List products.

        Args:
            status: One of ``noclosed``, ``closed``, ``involved`` or ``all``.
        """
        return self._get(
            "product",
            "all",
            name="getProductList",
            params=[
                ("productID", product_id),
                ("line", line),
                ("status", status),
                ("orderBy", order_by),
                ("recTotal", rec_total),
                ("recPerPage", rec_per_page),
                ("pageID", page_id),
            ],
            fields=("title", "products", "productStats"),
            extra_fields=extra_fields,
        )

    def get(self, product_id: int, extra_fields: Sequence[str] | None = None) -> ApiResult:
        return self._get(
            "product",
            "view",
            name="getProduct",
            params=[("productID", product_id)],
            fields=("title", "products", "product", "branches", "dynamics"),
            extra_fields=extra_fields,
        )

    def create_params(self, extra_fields: Sequence[str] | None = None) -> ApiResult:
        return self._get(
            "product",
            "create",
            name="getProductCreateParams",
            fields=("title", "products", "lines", "poUsers", "qdUsers", "rdUsers", "groups"),
            extra_fields=extra_fields,
        )

    def add(
        self,
        name: str,
        code: str,
        line: int = 0,
        po: str | None = None,
        qd: str | None = None,
        rd: str | None = None,
        type: str = "normal",
        desc: str | None = None,
        acl: str = "open",
        whitelist: Sequence[int] | None = None,
    ) -> ApiResult:
        """Create a product.

        Args:
            po: Product owner account.
            qd: Quality manager account.
            rd: Release manager account.
            type: ``normal``, ``branch`` or ``platform``.
            acl: ``open``, ``custom`` or ``private``.
        """
        return self._post(
            "product",
            "create",
            {
                "name": name,
                "code": code,
                "line": line,
                "PO": po,
                "QD": qd,
                "RD": rd,
                "type": type,
                "desc": desc,
                "acl": acl,
                "whitelist": list(whitelist or ()),
            },
            name="addProduct",
        )
