import datetime as dt
import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
INCOME = "income"
EXPENSE = "expense"

DEFAULT_INCOME_CATEGORIES = ["Salary", "Freelance", "Investment", "Interest", "Bonus", "Other"]
DEFAULT_EXPENSE_CATEGORIES = [
    "Rent",
    "Food",
    "Transport",
    "Travel",
    "Shopping",
    "Bills",
    "Entertainment",
    "Health",
    "Education",
    "Other",
]


def _lift_mongo_id(data: Any) -> Any:
    """Accept `_id` as an alias for `id` (records coming straight from Mongo)."""
    if isinstance(data, Mapping) and data.get("id") in (None, "") and data.get("_id") not in (None, ""):
        data = dict(data)
        data["id"] = data["_id"]
    return data


def _coerce_id(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


class CategoryRef(BaseModel):
    """Normalized category reference attached to every transaction."""

    id: Optional[str] = None
    name: str = UNCATEGORIZED

    model_config = ConfigDict(frozen=True)


class Category(BaseModel):
    id: Optional[str] = None
    name: str = ""
    type: str = EXPENSE
    active: bool = True

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _accept_mongo_id(cls, data: Any) -> Any:
        return _lift_mongo_id(data)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Optional[str]:
        return _coerce_id(value)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> str:
        return str(value or "").strip()

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, value: Any) -> str:
        return str(value or EXPENSE).lower()

    @field_validator("active", mode="before")
    @classmethod
    def _coerce_active(cls, value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, str):
            return value.strip().lower() not in ("false", "0", "no", "off", "")
        return bool(value)


class Transaction(BaseModel):
    """
    A single income or expense record.

    Every field is coerced permissively so that validation of a loosely-shaped
    record never fails: bad amounts become 0, bad dates become None and the
    category is reduced to a CategoryRef.
    """

    id: Optional[str] = None
    amount: float = 0.0
    type: str = ""
    date: Optional[dt.date] = None
    category: CategoryRef = Field(default_factory=CategoryRef)
    description: Optional[str] = ""

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _accept_mongo_id(cls, data: Any) -> Any:
        return _lift_mongo_id(data)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Optional[str]:
        return _coerce_id(value)

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> float:
        if value is None or isinstance(value, bool):
            return 0.0
        try:
            amount = float(value)
        except (TypeError, ValueError):
            return 0.0
        return amount if math.isfinite(amount) else 0.0

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).lower()

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Optional[dt.date]:
        return parse_date(value)

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: Any) -> CategoryRef:
        return normalize_category(value)

    @field_validator("description", mode="before")
    @classmethod
    def _coerce_description(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @property
    def is_income(self) -> bool:
        return self.type == INCOME

    @property
    def month_key(self) -> Optional[str]:
        if self.date is None:
            return None
        return f"{self.date.year:04d}-{self.date.month:02d}"


def parse_date(value: Any) -> Optional[dt.date]:
    """Best-effort conversion of a raw date value; returns None when unparseable."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, (int, float)):
        # Epoch milliseconds, as serialized by JavaScript clients
        try:
            return dt.datetime.fromtimestamp(value / 1000, tz=dt.timezone.utc).date()
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return dt.datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return dt.datetime.strptime(text, "%Y-%m").date()
    except ValueError:
        return None


def normalize_category(raw: Any, lookup: Optional[Mapping[str, str]] = None) -> CategoryRef:
    """
    Reduce the many shapes a transaction category arrives in to a CategoryRef.

    Mappings carry their own name; bare values are treated as ids and resolved
    through `lookup` (id -> display name), falling back to the value itself.
    """
    if isinstance(raw, CategoryRef):
        return raw
    if isinstance(raw, Category):
        return CategoryRef(id=raw.id, name=raw.name or raw.id or UNCATEGORIZED)
    if isinstance(raw, Mapping):
        ref_id = _coerce_id(raw.get("id") or raw.get("_id"))
        name = raw.get("name")
        if name:
            return CategoryRef(id=ref_id, name=str(name))
        return CategoryRef(id=ref_id, name=ref_id or UNCATEGORIZED)
    if raw is None or raw == "" or raw is False:
        return CategoryRef()

    ref_id = str(raw)
    name = (lookup or {}).get(ref_id, ref_id)
    return CategoryRef(id=ref_id, name=name)


def _validate_categories(categories: Iterable[Any]) -> List[Category]:
    validated: List[Category] = []
    for item in categories or []:
        if isinstance(item, Category):
            validated.append(item)
            continue
        try:
            validated.append(Category.model_validate(item))
        except ValidationError as e:
            logger.debug(f"Skipping malformed category record {item!r}: {e}")
    return validated


def category_lookup(categories: Iterable[Any]) -> Dict[str, str]:
    lookup: Dict[str, str] = {}
    for category in _validate_categories(categories):
        if category.id and category.name:
            lookup[category.id] = category.name
    return lookup


def normalize_transactions(
    records: Iterable[Any],
    categories: Optional[Iterable[Any]] = None,
) -> List[Transaction]:
    """
    Validate raw records into Transactions, resolving category ids to names.
    """
    lookup = category_lookup(categories or [])
    transactions: List[Transaction] = []
    for record in records or []:
        if isinstance(record, Transaction):
            transactions.append(record)
            continue
        if not isinstance(record, Mapping):
            logger.debug(f"Skipping non-mapping transaction record: {record!r}")
            continue
        data = _lift_mongo_id(dict(record))
        data["category"] = normalize_category(data.get("category"), lookup)
        transactions.append(Transaction.model_validate(data))
    return transactions


def merge_categories(categories: Iterable[Any], type_filter: str = EXPENSE) -> List[Category]:
    """
    Merge user categories with the built-in defaults, deduplicated by name.

    User categories come first; `type_filter` is "income", "expense" or "all".
    """
    if type_filter == INCOME:
        defaults = DEFAULT_INCOME_CATEGORIES
    elif type_filter == EXPENSE:
        defaults = DEFAULT_EXPENSE_CATEGORIES
    else:
        defaults = DEFAULT_INCOME_CATEGORIES + DEFAULT_EXPENSE_CATEGORIES

    merged: Dict[str, Category] = {}
    for category in _validate_categories(categories):
        if not category.name:
            continue
        if type_filter != "all" and category.type != type_filter:
            continue
        if category.name not in merged:
            merged[category.name] = Category(
                id=category.id or category.name,
                name=category.name,
                type=category.type,
                active=category.active,
            )

    for name in defaults:
        if name not in merged:
            category_type = INCOME if name in DEFAULT_INCOME_CATEGORIES else EXPENSE
            merged[name] = Category(id=name, name=name, type=category_type)

    return list(merged.values())


class AnalyticsRequest(BaseModel):
    """Body accepted by the analytics endpoints."""

    transactions: List[Dict[str, Any]] = Field(default_factory=list)
    categories: List[Dict[str, Any]] = Field(default_factory=list)
    budget_overrides: Optional[Dict[str, float]] = None

    def to_transactions(self) -> List[Transaction]:
        return normalize_transactions(self.transactions, self.categories)
