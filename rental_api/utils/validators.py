"""
Validation utilities for the Rental Listing API.
Parses loosely typed form values and checks query parameters.
"""

import json
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from rental_api.utils.exceptions import ValidationError


class ValidationUtils:
    """
    Utility class for common validation operations.
    Multipart forms deliver every value as text, so these helpers
    turn them back into the types the models expect.
    """

    @staticmethod
    def parse_amenities(value: Any) -> Optional[List[str]]:
        """
        Parse amenities sent either as a JSON array or a comma-separated string.

        Args:
            value: Raw form value, list or None

        Returns:
            List of amenity names, or None when nothing was sent

        Raises:
            ValidationError: If a JSON array is malformed
        """
        if value is None:
            return None

        if isinstance(value, list):
            return [str(item).strip() for item in value if str(item).strip()]

        text = str(value).strip()
        if not text:
            return []

        if text.startswith("["):
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError:
                raise ValidationError("Invalid amenities format")
            if not isinstance(parsed, list):
                raise ValidationError("Invalid amenities format")
            return [str(item).strip() for item in parsed if str(item).strip()]

        return [item.strip() for item in text.split(",") if item.strip()]

    @staticmethod
    def coerce_bool(value: Any) -> Optional[bool]:
        """
        Coerce a form flag: only ``True`` or the string "true" count as true.

        Returns:
            None when the value is absent, so model defaults apply
        """
        if value is None:
            return None
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() == "true"

    @staticmethod
    def validate_pagination(
        page: Any,
        limit: Any,
        default_limit: int = 10,
        max_limit: int = 100
    ) -> Tuple[int, int]:
        """
        Validate pagination parameters.

        Returns:
            Tuple of validated page and limit

        Raises:
            ValidationError: If pagination parameters are invalid
        """
        try:
            validated_page = int(page) if page is not None else 1
            validated_limit = int(limit) if limit is not None else default_limit
        except (TypeError, ValueError):
            raise ValidationError("page and limit must be valid integers")

        if validated_page < 1:
            raise ValidationError("page must be at least 1")

        if validated_limit < 1 or validated_limit > max_limit:
            raise ValidationError(f"limit must be between 1 and {max_limit}")

        return validated_page, validated_limit

    @staticmethod
    def validate_sort_parameters(
        sort_by: Optional[str],
        order: Optional[str],
        allowed_fields: List[str],
        default_field: str = "name"
    ) -> Tuple[str, str]:
        """
        Validate sorting parameters.

        Args:
            sort_by: Field to sort by
            order: Sort order (asc/desc, case-insensitive)
            allowed_fields: List of allowed sort fields
            default_field: Field used when ``sort_by`` is absent

        Returns:
            Tuple of validated sort field and lower-cased order

        Raises:
            ValidationError: If sort parameters are invalid
        """
        if sort_by and sort_by not in allowed_fields:
            raise ValidationError(f"Invalid sort field. Allowed fields: {', '.join(allowed_fields)}")

        if order and order.lower() not in ("asc", "desc"):
            raise ValidationError("Sort order must be 'asc' or 'desc'")

        return sort_by or default_field, order.lower() if order else "asc"

    @staticmethod
    def validate_price_range(
        min_price: Optional[Decimal],
        max_price: Optional[Decimal]
    ) -> None:
        """
        Raises:
            ValidationError: If the minimum price is above the maximum price
        """
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError("Minimum price cannot be greater than maximum price")
