"""Field-level validation and form/entity conversion for catalog products.

Every field validator is a pure static method returning either ``None`` or a
single :class:`ValidationError`. ``validate`` runs all of them and collects
every failure, so a caller can report all invalid fields at once.
"""

import math
import re
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

from ..models.product import Product, ProductCategory, ProductForm, to_attr_key
from ..models.validation_result import ValidationError, ValidationResult

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 1000
PRICE_MIN = 0.01
PRICE_MAX = 999999.99
SKU_MIN_LENGTH = 3
SKU_MAX_LENGTH = 20
SKU_PATTERN = re.compile(r"^[A-Z0-9-]+$")
TAGS_MAX_COUNT = 10
TAG_MIN_LENGTH = 2
TAG_MAX_LENGTH = 20
BRAND_MIN_LENGTH = 2
BRAND_MAX_LENGTH = 50
RATING_MAX = 5

UPLOADS_PREFIX = "/uploads/"
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg")
IMAGE_HOST_PATTERNS = ("unsplash.com", "images.", "img.")


def parse_tags(raw: str) -> List[str]:
    """Split a comma-separated tag string into trimmed, non-empty tokens."""
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def join_tags(tags: List[str]) -> str:
    return ", ".join(tags)


def format_price(price: float) -> str:
    """Stringify a price the way a form displays it (``20`` not ``20.0``)."""
    if float(price).is_integer():
        return str(int(price))
    return repr(float(price))


def _parse_price(price: Union[str, int, float, None]) -> Optional[float]:
    if isinstance(price, bool) or price is None:
        return None
    if isinstance(price, (int, float)):
        value = float(price)
    else:
        try:
            value = float(str(price).strip())
        except ValueError:
            return None
    return value if math.isfinite(value) else None


def _is_absolute_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc) and " " not in url


class ProductValidator:
    """Validates product forms and partial product updates."""

    # ------------------------------------------------------------------
    # Field validators
    # ------------------------------------------------------------------

    @staticmethod
    def validate_name(name: Optional[str]) -> Optional[ValidationError]:
        value = (name or "").strip()
        if not value:
            return ValidationError("name", "Product name is required")
        if len(value) < NAME_MIN_LENGTH:
            return ValidationError(
                "name", f"Product name must be at least {NAME_MIN_LENGTH} characters long"
            )
        if len(value) > NAME_MAX_LENGTH:
            return ValidationError(
                "name", f"Product name cannot exceed {NAME_MAX_LENGTH} characters"
            )
        return None

    @staticmethod
    def validate_description(description: Optional[str]) -> Optional[ValidationError]:
        value = (description or "").strip()
        if not value:
            return ValidationError("description", "Product description is required")
        if len(value) < DESCRIPTION_MIN_LENGTH:
            return ValidationError(
                "description",
                f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters long"
            )
        if len(value) > DESCRIPTION_MAX_LENGTH:
            return ValidationError(
                "description", f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
            )
        return None

    @staticmethod
    def validate_price(price: Union[str, int, float, None]) -> Optional[ValidationError]:
        value = _parse_price(price)
        if value is None:
            return ValidationError("price", "Price must be a valid number")
        if value < PRICE_MIN:
            return ValidationError("price", f"Price must be at least ${PRICE_MIN}")
        if value > PRICE_MAX:
            return ValidationError("price", f"Price cannot exceed ${PRICE_MAX:,.2f}")
        return None

    @staticmethod
    def validate_category(category: Optional[str]) -> Optional[ValidationError]:
        if isinstance(category, ProductCategory):
            category = category.value
        if not category:
            return ValidationError("category", "Product category is required")
        if not ProductCategory.is_valid(category):
            return ValidationError("category", "Invalid product category")
        return None

    @staticmethod
    def validate_image_url(image_url: Optional[str]) -> Optional[ValidationError]:
        value = (image_url or "").strip()
        if not value:
            return ValidationError("imageUrl", "Product image URL is required")

        lowered = value.lower()

        # Files served from the local upload namespace only need an image extension.
        if value.startswith(UPLOADS_PREFIX):
            if not lowered.endswith(IMAGE_EXTENSIONS):
                return ValidationError(
                    "imageUrl",
                    "Local image must have a valid extension (jpg, jpeg, png, gif, webp, svg)"
                )
            return None

        if not _is_absolute_url(value):
            return ValidationError("imageUrl", "Please provide a valid image URL")

        has_extension = any(ext in lowered for ext in IMAGE_EXTENSIONS)
        is_image_host = any(pattern in lowered for pattern in IMAGE_HOST_PATTERNS)
        if not (has_extension or is_image_host):
            return ValidationError(
                "imageUrl",
                "Please provide a valid image URL (jpg, png, gif, webp, or image service URL)"
            )
        return None

    @staticmethod
    def validate_sku(sku: Optional[str]) -> Optional[ValidationError]:
        if not sku:
            return None
        if len(sku) < SKU_MIN_LENGTH:
            return ValidationError("sku", f"SKU must be at least {SKU_MIN_LENGTH} characters long")
        if len(sku) > SKU_MAX_LENGTH:
            return ValidationError("sku", f"SKU cannot exceed {SKU_MAX_LENGTH} characters")
        if not SKU_PATTERN.match(sku):
            return ValidationError(
                "sku", "SKU can only contain uppercase letters, numbers, and hyphens"
            )
        return None

    @staticmethod
    def validate_tags(tags: Union[str, List[str], None]) -> Optional[ValidationError]:
        if isinstance(tags, (list, tuple)):
            tokens = [str(tag).strip() for tag in tags if str(tag).strip()]
        else:
            if not (tags or "").strip():
                return ValidationError("tags", "At least one tag is required")
            tokens = parse_tags(tags)

        if not tokens:
            return ValidationError("tags", "At least one valid tag is required")
        if len(tokens) > TAGS_MAX_COUNT:
            return ValidationError("tags", f"Cannot have more than {TAGS_MAX_COUNT} tags")

        for tag in tokens:
            if len(tag) < TAG_MIN_LENGTH:
                return ValidationError(
                    "tags", f"Each tag must be at least {TAG_MIN_LENGTH} characters long"
                )
            if len(tag) > TAG_MAX_LENGTH:
                return ValidationError(
                    "tags", f"Each tag cannot exceed {TAG_MAX_LENGTH} characters"
                )
        return None

    @staticmethod
    def validate_brand(brand: Optional[str]) -> Optional[ValidationError]:
        if not brand:
            return None
        value = brand.strip()
        if len(value) < BRAND_MIN_LENGTH:
            return ValidationError("brand", f"Brand must be at least {BRAND_MIN_LENGTH} characters long")
        if len(value) > BRAND_MAX_LENGTH:
            return ValidationError("brand", f"Brand cannot exceed {BRAND_MAX_LENGTH} characters")
        return None

    @staticmethod
    def validate_rating(rating: Any) -> Optional[ValidationError]:
        if rating is None:
            return None
        if isinstance(rating, bool) or not isinstance(rating, (int, float)):
            return ValidationError("rating", "Rating must be a number")
        if not 0 <= rating <= RATING_MAX:
            return ValidationError("rating", f"Rating must be between 0 and {RATING_MAX}")
        return None

    @staticmethod
    def validate_review_count(review_count: Any) -> Optional[ValidationError]:
        if review_count is None:
            return None
        if isinstance(review_count, bool) or not isinstance(review_count, int):
            return ValidationError("reviewCount", "Review count must be a whole number")
        if review_count < 0:
            return ValidationError("reviewCount", "Review count cannot be negative")
        return None

    # ------------------------------------------------------------------
    # Aggregate validation
    # ------------------------------------------------------------------

    @classmethod
    def validate(cls, form: Union[ProductForm, Dict[str, Any]]) -> ValidationResult:
        """Validate every editable field of *form* and collect all failures."""
        if isinstance(form, dict):
            form = ProductForm.from_dict(form)

        result = ValidationResult()
        result.extend(cls.validate_name(form.name))
        result.extend(cls.validate_description(form.description))
        result.extend(cls.validate_price(form.price))
        result.extend(cls.validate_category(form.category))
        result.extend(cls.validate_image_url(form.image_url))
        result.extend(cls.validate_sku(form.sku))
        result.extend(cls.validate_tags(form.tags))
        result.extend(cls.validate_brand(form.brand))
        return result

    @classmethod
    def validate_partial(cls, updates: Dict[str, Any]) -> ValidationResult:
        """Validate only the fields present in a partial product update."""
        validators = {
            "name": cls.validate_name,
            "description": cls.validate_description,
            "price": cls.validate_price,
            "category": cls.validate_category,
            "image_url": cls.validate_image_url,
            "sku": cls.validate_sku,
            "tags": cls.validate_tags,
            "brand": cls.validate_brand,
            "rating": cls.validate_rating,
            "review_count": cls.validate_review_count,
        }

        result = ValidationResult()
        for key, value in updates.items():
            validator = validators.get(to_attr_key(key))
            if validator is not None:
                result.extend(validator(value))
        return result

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    @staticmethod
    def form_to_entity(form: Union[ProductForm, Dict[str, Any]]) -> Dict[str, Any]:
        """
        Convert a validated form into a product draft.

        The draft carries no ``id`` or timestamps; those are assigned by the
        catalog controller when the product is created.
        """
        if isinstance(form, dict):
            form = ProductForm.from_dict(form)

        return {
            "name": form.name.strip(),
            "description": form.description.strip(),
            "price": float(str(form.price).strip()),
            "category": form.category,
            "image_url": form.image_url.strip(),
            "in_stock": bool(form.in_stock),
            "tags": parse_tags(form.tags),
            "sku": (form.sku or "").strip() or None,
            "brand": (form.brand or "").strip() or None,
        }

    @staticmethod
    def entity_to_form(entity: Union[Product, Dict[str, Any]]) -> ProductForm:
        """Convert a product (or draft) back into its form representation."""
        if isinstance(entity, Product):
            data = {
                "name": entity.name,
                "description": entity.description,
                "price": entity.price,
                "category": entity.category,
                "image_url": entity.image_url,
                "in_stock": entity.in_stock,
                "tags": entity.tags,
                "sku": entity.sku,
                "brand": entity.brand,
            }
        else:
            data = {to_attr_key(key): value for key, value in entity.items()}

        return ProductForm(
            name=data["name"],
            description=data["description"],
            price=format_price(data["price"]),
            category=data["category"],
            image_url=data["image_url"],
            in_stock=bool(data.get("in_stock", True)),
            tags=join_tags(data.get("tags") or []),
            sku=data.get("sku") or "",
            brand=data.get("brand") or "",
        )


def validate_product_form(form: Union[ProductForm, Dict[str, Any]]) -> ValidationResult:
    return ProductValidator.validate(form)


def validate_product(updates: Dict[str, Any]) -> ValidationResult:
    return ProductValidator.validate_partial(updates)


def convert_form_to_product(form: Union[ProductForm, Dict[str, Any]]) -> Dict[str, Any]:
    return ProductValidator.form_to_entity(form)


def convert_product_to_form(entity: Union[Product, Dict[str, Any]]) -> ProductForm:
    return ProductValidator.entity_to_form(entity)
