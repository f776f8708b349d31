"""Product, filter, query and statistics data models."""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Optional, List, Dict, Any

from ..utils.exceptions import InvalidQueryError


class ProductCategory(str, Enum):
    """Closed set of catalog category tags."""

    ELECTRONICS = "electronics"
    CLOTHING = "clothing"
    HOME = "home"
    BOOKS = "books"
    SPORTS = "sports"
    BEAUTY = "beauty"
    TOYS = "toys"
    AUTOMOTIVE = "automotive"

    @classmethod
    def values(cls) -> List[str]:
        return [category.value for category in cls]

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        return isinstance(value, str) and value in cls.values()


CATEGORY_LABELS: Dict[str, str] = {
    ProductCategory.ELECTRONICS.value: "Electronics",
    ProductCategory.CLOTHING.value: "Clothing",
    ProductCategory.HOME.value: "Home & Garden",
    ProductCategory.BOOKS.value: "Books",
    ProductCategory.SPORTS.value: "Sports & Outdoors",
    ProductCategory.BEAUTY.value: "Beauty & Personal Care",
    ProductCategory.TOYS.value: "Toys & Games",
    ProductCategory.AUTOMOTIVE.value: "Automotive",
}

SORT_FIELDS = ("name", "price", "createdAt")
SORT_ORDERS = ("asc", "desc")

# snake_case attribute -> camelCase key used on the wire and in the durable store
_WIRE_KEYS = {
    "image_url": "imageUrl",
    "in_stock": "inStock",
    "review_count": "reviewCount",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}
_ATTR_KEYS = {wire: attr for attr, wire in _WIRE_KEYS.items()}

IMMUTABLE_FIELDS = ("id", "created_at")

_TEXT_FIELDS = ("name", "description", "category", "image_url", "created_at", "updated_at")


def to_attr_key(key: str) -> str:
    """Map a wire key (``imageUrl``) to its attribute name (``image_url``)."""
    return _ATTR_KEYS.get(key, key)


@dataclass
class Product:
    """A single catalog record."""

    id: str
    name: str
    description: str
    price: float
    category: str
    image_url: str
    in_stock: bool
    tags: List[str]
    created_at: str
    updated_at: str
    sku: Optional[str] = None
    brand: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None

    def __post_init__(self):
        """Validate and normalize data."""
        if not self.id:
            raise ValueError("Product id cannot be empty")
        if not isinstance(self.id, str):
            raise ValueError("Product id must be a string")

        if isinstance(self.category, ProductCategory):
            self.category = self.category.value

        for name in _TEXT_FIELDS:
            if not isinstance(getattr(self, name), str):
                raise ValueError(f"Product {name} must be a string")

        if isinstance(self.price, bool) or not isinstance(self.price, (int, float)):
            raise ValueError("Price must be a number")
        self.price = float(self.price)

        if not isinstance(self.in_stock, bool):
            raise ValueError("Product in_stock must be a boolean")

        if not isinstance(self.tags, (list, tuple)) or not all(isinstance(tag, str) for tag in self.tags):
            raise ValueError("Product tags must be a list of strings")
        self.tags = list(self.tags)

        for name in ("sku", "brand"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"Product {name} must be a string")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase dictionary representation."""
        data: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None and f.default is None:
                continue
            data[_WIRE_KEYS.get(f.name, f.name)] = list(value) if f.name == "tags" else value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        """Create instance from a dictionary using either key style."""
        values = {to_attr_key(key): value for key, value in data.items()}
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in values.items() if key in known})

    def merged(self, updates: Dict[str, Any], updated_at: str) -> "Product":
        """Return a copy with *updates* applied; id and created_at never change."""
        changes = {
            to_attr_key(key): value
            for key, value in updates.items()
            if to_attr_key(key) not in IMMUTABLE_FIELDS
        }
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise ValueError(f"Unknown product fields: {', '.join(sorted(unknown))}")
        changes["updated_at"] = updated_at
        return replace(self, **changes)


@dataclass
class DecodeResult:
    """Outcome of decoding an untrusted product payload."""

    ok: bool
    products: List[Product] = field(default_factory=list)
    reason: Optional[str] = None
    skipped: int = 0


def decode_product_list(payload: Any) -> DecodeResult:
    """
    Decode a raw payload into products, rejecting anything that is not a list.

    Records that fail to decode are skipped and counted; the payload as a
    whole is only rejected when it is not a list.
    """
    if not isinstance(payload, list):
        return DecodeResult(ok=False, reason=f"expected a list, got {type(payload).__name__}")

    products: List[Product] = []
    skipped = 0
    for record in payload:
        if isinstance(record, Product):
            products.append(record)
            continue
        if not isinstance(record, dict):
            skipped += 1
            continue
        try:
            products.append(Product.from_dict(record))
        except (TypeError, ValueError):
            skipped += 1

    return DecodeResult(ok=True, products=products, skipped=skipped)


# camelCase filter key -> ProductFilters attribute
_FILTER_ATTR_KEYS = {
    "minPrice": "min_price",
    "maxPrice": "max_price",
    "inStock": "in_stock",
    "searchQuery": "search_query",
    "sortBy": "sort_by",
    "sortOrder": "sort_order",
}


def to_filter_key(key: str) -> str:
    return _FILTER_ATTR_KEYS.get(key, key)


@dataclass
class ProductFilters:
    """Query descriptor applied to the baseline collection."""

    category: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    in_stock: Optional[bool] = None
    search_query: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: str = "desc"

    def __post_init__(self):
        if isinstance(self.category, ProductCategory):
            self.category = self.category.value

        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise InvalidQueryError(
                "Minimum price cannot exceed maximum price",
                details={"min_price": self.min_price, "max_price": self.max_price}
            )

        if self.sort_by is not None and self.sort_by not in SORT_FIELDS:
            raise InvalidQueryError(f"Unsupported sort key: {self.sort_by}")

        if self.sort_order not in SORT_ORDERS:
            raise InvalidQueryError(f"Unsupported sort order: {self.sort_order}")

    @property
    def has_active_filters(self) -> bool:
        return bool(
            self.search_query
            or self.category
            or self.min_price is not None
            or self.max_price is not None
            or self.in_stock is not None
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "minPrice": self.min_price,
            "maxPrice": self.max_price,
            "inStock": self.in_stock,
            "searchQuery": self.search_query,
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order,
        }


@dataclass
class ProductQuery:
    """Filters plus the 1-based page window requested by a collaborator."""

    filters: ProductFilters = field(default_factory=ProductFilters)
    page: int = 1
    limit: int = 12

    def __post_init__(self):
        if self.page < 1:
            raise InvalidQueryError("Page must be at least 1", details={"page": self.page})
        if self.limit < 1:
            raise InvalidQueryError("Limit must be at least 1", details={"limit": self.limit})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductQuery":
        """Build a query from the collaborator-facing camelCase shape."""
        filters = ProductFilters(
            category=data.get("category") or None,
            min_price=data.get("minPrice"),
            max_price=data.get("maxPrice"),
            in_stock=data.get("inStock"),
            search_query=data.get("searchQuery") or None,
            sort_by=data.get("sortBy"),
            sort_order=data.get("sortOrder") or "desc",
        )
        return cls(filters=filters, page=data.get("page", 1), limit=data.get("limit", 12))


@dataclass
class ProductStats:
    """Aggregate counts over the full, unfiltered collection."""

    total: int = 0
    in_stock: int = 0
    out_of_stock: int = 0
    categories: Dict[str, int] = field(
        default_factory=lambda: {category: 0 for category in ProductCategory.values()}
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "inStock": self.in_stock,
            "outOfStock": self.out_of_stock,
            "categories": dict(self.categories),
        }


@dataclass
class QueryResult:
    """One page of a filtered, sorted view plus catalog-wide statistics."""

    items: List[Product]
    total: int
    total_pages: int
    page: int
    limit: int
    stats: ProductStats

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [product.to_dict() for product in self.items],
            "totalPages": self.total_pages,
            "stats": self.stats.to_dict(),
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "hasNextPage": self.has_next_page,
                "hasPreviousPage": self.has_previous_page,
            },
        }


@dataclass
class ProductForm:
    """String-based representation of the editable fields, as a form submits them."""

    name: str = ""
    description: str = ""
    price: str = ""
    category: str = ""
    image_url: str = ""
    in_stock: bool = True
    tags: str = ""
    sku: Optional[str] = None
    brand: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductForm":
        """Create a form from submitted fields using either key style."""
        values = {to_attr_key(key): value for key, value in data.items()}
        known = {f.name for f in fields(cls)}
        form = cls(**{key: value for key, value in values.items() if key in known})

        # Tags may arrive already split; forms carry them comma-joined.
        if isinstance(form.tags, (list, tuple)):
            form.tags = ", ".join(str(tag) for tag in form.tags)
        if form.price is None:
            form.price = ""
        elif not isinstance(form.price, str):
            form.price = str(form.price)
        return form

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "imageUrl": self.image_url,
            "inStock": self.in_stock,
            "tags": self.tags,
            "sku": self.sku or "",
            "brand": self.brand or "",
        }
