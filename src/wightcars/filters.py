# wightcars/filters.py
import math
from dataclasses import dataclass, asdict, field
from typing import Any, List, Optional

from sqlalchemy import and_, or_, func, true

from .errors import ValidationError
from .models import Car, User

DEFAULT_STATUS = "active"
DEFAULT_SORT = "created_desc"
DEFAULT_LIMIT = 20
MAX_LIMIT = 50
# INT columns are signed 32-bit
MAX_INT = 2 ** 31 - 1

# sort key -> (column, listing dict key, descending)
SORTS = {
    "price_asc": (Car.price, "price", False),
    "price_desc": (Car.price, "price", True),
    "year_asc": (Car.year, "year", False),
    "year_desc": (Car.year, "year", True),
    "mileage_asc": (Car.mileage, "mileage", False),
    "mileage_desc": (Car.mileage, "mileage", True),
    "created_asc": (Car.created_at, "created_at", False),
    "created_desc": (Car.created_at, "created_at", True),
}


def _lookup(row, path):
    value = row
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _like_escape(term):
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class Predicate:
    """One AND-ed condition of a listing search."""

    def clause(self):
        raise NotImplementedError

    def matches(self, row) -> bool:
        raise NotImplementedError


class Equals(Predicate):
    def __init__(self, column, path, value):
        self.column, self.path, self.value = column, path, value

    def clause(self):
        return self.column == self.value

    def matches(self, row):
        return _lookup(row, self.path) == self.value


class IEquals(Equals):
    def clause(self):
        return func.lower(self.column) == self.value.lower()

    def matches(self, row):
        v = _lookup(row, self.path)
        return v is not None and str(v).lower() == self.value.lower()


class Bound(Predicate):
    def __init__(self, column, path, value, upper=False):
        self.column, self.path, self.value, self.upper = column, path, value, upper

    def clause(self):
        return self.column <= self.value if self.upper else self.column >= self.value

    def matches(self, row):
        v = _lookup(row, self.path)
        if v is None:
            return False
        return v <= self.value if self.upper else v >= self.value


class Contains(Predicate):
    """Case-insensitive substring match."""

    def __init__(self, column, path, term):
        self.column, self.path, self.term = column, path, term

    def clause(self):
        pattern = f"%{_like_escape(self.term.lower())}%"
        return func.lower(self.column).like(pattern, escape="\\")

    def matches(self, row):
        v = _lookup(row, self.path)
        return v is not None and self.term.lower() in str(v).lower()


class AnyOf(Predicate):
    def __init__(self, *predicates):
        self.predicates = predicates

    def clause(self):
        return or_(*[p.clause() for p in self.predicates])

    def matches(self, row):
        return any(p.matches(row) for p in self.predicates)


def _parse_int(args, name, errors):
    raw = args.get(name)
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    if isinstance(raw, bool):
        errors.append(name)
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        errors.append(name)
        return None
    if abs(value) > MAX_INT:
        errors.append(name)
        return None
    return value


def parse_bool(raw):
    if isinstance(raw, bool):
        return raw
    if raw is None:
        return None
    raw = str(raw).strip().lower()
    if raw in ("true", "1"):
        return True
    if raw in ("false", "0"):
        return False
    return None


def _parse_str(args, name):
    raw = args.get(name)
    if raw is None:
        return None
    raw = str(raw).strip()
    return raw or None


def page_count(total, limit):
    return math.ceil(total / limit) if limit else 0


@dataclass
class CarFilters:
    make: Optional[str] = None
    model: Optional[str] = None
    min_year: Optional[int] = None
    max_year: Optional[int] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    min_mileage: Optional[int] = None
    max_mileage: Optional[int] = None
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    body_type: Optional[str] = None
    location: Optional[str] = None
    search: Optional[str] = None
    is_dealer: Optional[bool] = None
    status: str = DEFAULT_STATUS
    user_id: Optional[int] = None
    sort_by: str = DEFAULT_SORT
    page: int = 1
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_args(cls, args, default_status=DEFAULT_STATUS, default_limit=DEFAULT_LIMIT, max_limit=MAX_LIMIT):
        """Build filters from a query-string mapping (or a plain dict)."""
        errors: List[str] = []
        ints = {
            name: _parse_int(args, name, errors)
            for name in ("min_year", "max_year", "min_price", "max_price",
                         "min_mileage", "max_mileage", "user_id", "page", "limit")
        }
        if errors:
            raise ValidationError(f"Invalid number for: {', '.join(errors)}", fields=errors)

        sort_by = _parse_str(args, "sort_by")
        if sort_by not in SORTS:
            sort_by = DEFAULT_SORT

        page = ints.pop("page") or 1
        limit = ints.pop("limit")
        if limit is None or limit < 1:
            limit = default_limit
        return cls(
            make=_parse_str(args, "make"),
            model=_parse_str(args, "model"),
            fuel_type=_parse_str(args, "fuel_type"),
            transmission=_parse_str(args, "transmission"),
            body_type=_parse_str(args, "body_type"),
            location=_parse_str(args, "location"),
            search=_parse_str(args, "search"),
            is_dealer=parse_bool(args.get("is_dealer")),
            status=_parse_str(args, "status") or default_status,
            sort_by=sort_by,
            page=max(page, 1),
            limit=min(limit, max_limit),
            **ints,
        )

    @property
    def offset(self):
        return (self.page - 1) * self.limit

    def predicates(self) -> List[Predicate]:
        preds: List[Predicate] = []
        if self.status != "all":
            preds.append(Equals(Car.status, ("status",), self.status))
        if self.make:
            preds.append(IEquals(Car.make, ("make",), self.make))
        if self.model:
            preds.append(IEquals(Car.model, ("model",), self.model))
        for value, column, key, upper in (
            (self.min_price, Car.price, "price", False),
            (self.max_price, Car.price, "price", True),
            (self.min_year, Car.year, "year", False),
            (self.max_year, Car.year, "year", True),
            (self.min_mileage, Car.mileage, "mileage", False),
            (self.max_mileage, Car.mileage, "mileage", True),
        ):
            if value is not None:
                preds.append(Bound(column, (key,), value, upper=upper))
        if self.fuel_type:
            preds.append(Equals(Car.fuel_type, ("fuel_type",), self.fuel_type))
        if self.transmission:
            preds.append(Equals(Car.transmission, ("transmission",), self.transmission))
        if self.body_type:
            preds.append(Equals(Car.body_type, ("body_type",), self.body_type))
        if self.location:
            preds.append(Contains(Car.location, ("location",), self.location))
        if self.search:
            preds.append(AnyOf(
                Contains(Car.title, ("title",), self.search),
                Contains(Car.make, ("make",), self.search),
                Contains(Car.model, ("model",), self.search),
            ))
        if self.is_dealer is not None:
            preds.append(Equals(User.is_dealer, ("seller", "is_dealer"), self.is_dealer))
        if self.user_id is not None:
            preds.append(Equals(Car.user_id, ("user_id",), self.user_id))
        return preds

    def where(self):
        preds = self.predicates()
        return and_(*[p.clause() for p in preds]) if preds else true()

    def matches(self, row):
        return all(p.matches(row) for p in self.predicates())

    def order_by(self):
        column, _, desc = SORTS[self.sort_by]
        if desc:
            return [column.desc(), Car.id.desc()]
        return [column.asc(), Car.id.asc()]

    def sort_rows(self, rows):
        _, key, desc = SORTS[self.sort_by]
        present = [r for r in rows if r.get(key) is not None]
        missing = [r for r in rows if r.get(key) is None]
        present.sort(key=lambda r: (r[key], r["id"]), reverse=desc)
        missing.sort(key=lambda r: r["id"], reverse=desc)
        # NULLs sort first ascending, last descending
        return present + missing if desc else missing + present

    def to_dict(self):
        data = asdict(self)
        data.pop("page")
        data.pop("limit")
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class Page:
    items: List[Any] = field(default_factory=list)
    page: int = 1
    limit: int = DEFAULT_LIMIT
    total: int = 0

    @property
    def pages(self):
        return page_count(self.total, self.limit)

    @property
    def pagination(self):
        return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}
