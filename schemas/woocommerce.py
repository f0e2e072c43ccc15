"""
Pydantic schemas for raw WooCommerce REST records

Only the fields the sync reads are declared; everything else in the
payload is ignored. All fields are optional so that incomplete records
are kept and defaulted later by the formatters instead of rejected.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from core.exceptions import DataShapeError


def _coerce_text(v):
    """Blank or non-text values become None, scalars become stripped text"""
    if v is None or isinstance(v, (dict, list)):
        return None
    v = str(v).strip()
    return v or None


class WooModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class WooBilling(WooModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None

    @field_validator("first_name", "last_name", "email", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return _coerce_text(v)


class WooLineItem(WooModel):
    product_id: Any = None
    name: Optional[str] = None
    price: Any = None
    total: Any = None
    quantity: Any = None

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v):
        return _coerce_text(v)


class WooOrder(WooModel):
    """
    A WooCommerce order as returned by GET /orders.

    Monetary fields stay raw (usually textual decimals) and are parsed
    by the formatters with the parse-or-zero policy.
    """

    id: Any
    date_created_gmt: Optional[str] = None
    billing: WooBilling = WooBilling()
    total: Any = None
    payment_method_title: Optional[str] = None
    status: Optional[str] = None
    line_items: List[WooLineItem] = []

    @field_validator("billing", mode="before")
    @classmethod
    def default_billing(cls, v):
        return v if isinstance(v, dict) else {}

    @field_validator("line_items", mode="before")
    @classmethod
    def default_line_items(cls, v):
        """Anything other than a list of objects is treated as no items"""
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, dict)]

    @field_validator("date_created_gmt", "payment_method_title", "status", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _coerce_text(v)


class WooCategory(WooModel):
    id: Any = None
    name: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v):
        return _coerce_text(v)


class WooProduct(WooModel):
    """A WooCommerce product as returned by GET /products"""

    id: Any
    name: Optional[str] = None
    categories: List[WooCategory] = []
    price: Any = None
    stock_quantity: Any = None
    total_sales: Any = None

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v):
        return _coerce_text(v)

    @field_validator("categories", mode="before")
    @classmethod
    def default_categories(cls, v):
        if not isinstance(v, list):
            return []
        return [c for c in v if isinstance(c, dict)]


def _parse(model, raw: Any, kind: str):
    if not isinstance(raw, dict):
        raise DataShapeError(
            f"{kind} record is not a JSON object",
            context={"record_type": type(raw).__name__},
        )
    if raw.get("id") is None or not str(raw["id"]).strip():
        raise DataShapeError(f"{kind} record has no id", context={"keys": sorted(raw)[:20]})
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise DataShapeError(
            f"{kind} record {raw.get('id')} could not be validated",
            context={"record_id": str(raw.get("id"))},
            original_exception=e,
        )


def parse_order(raw: Dict[str, Any]) -> WooOrder:
    """Validate one raw order payload, raising DataShapeError if unusable"""
    return _parse(WooOrder, raw, "order")


def parse_product(raw: Dict[str, Any]) -> WooProduct:
    """Validate one raw product payload, raising DataShapeError if unusable"""
    return _parse(WooProduct, raw, "product")
