"""
Input validation utilities.

This module provides validation functions for raw catalog records and
participant input. Validators raise ValueError with a specific message;
callers decide whether to drop the input or report it.
"""

import re
import logging
from typing import Any, Dict, Optional

# Configure logging
logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_recipe_id(value: Any) -> int:
    """
    Validate a raw recipe identifier.

    Accepts positive integers and integral strings/floats ("12", 12.0).

    Args:
        value: Raw identifier

    Returns:
        int: The identifier

    Raises:
        ValueError: If the id is missing, not integral, or not positive
    """
    if value is None or isinstance(value, bool):
        raise ValueError("Recipe id is missing")

    if isinstance(value, str):
        value = value.strip()
        if not value.lstrip("-").isdigit():
            raise ValueError(f"Recipe id is not an integer: {value!r}")
        value = int(value)
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"Recipe id is not an integer: {value!r}")
        value = int(value)
    elif not isinstance(value, int):
        raise ValueError(f"Recipe id has unsupported type: {type(value).__name__}")

    if value <= 0:
        raise ValueError(f"Recipe id must be positive, got {value}")

    return value


def validate_recipe_record(record: Any) -> Dict:
    """
    Validate the shape of one raw catalog record.

    Ensures record:
    - Is a JSON object
    - Carries a usable identifier under "id" or "recipeid"

    Text fields are coerced rather than rejected: an ingredient list of
    strings is joined with ", ", other non-text values are cleared.

    Args:
        record: Raw record from the catalog source

    Returns:
        Dict: The record with a validated integer "id" key and text fields

    Raises:
        ValueError: If validation fails with specific error message
    """
    if not isinstance(record, dict):
        raise ValueError(f"Recipe record must be an object, got {type(record).__name__}")

    raw_id = record.get("id", record.get("recipeid"))
    recipe_id = validate_recipe_id(raw_id)

    validated = dict(record)
    validated["id"] = recipe_id

    ingredients = record.get("ingredients")
    if isinstance(ingredients, (list, tuple)):
        validated["ingredients"] = ", ".join(item for item in ingredients if isinstance(item, str))
    elif ingredients is not None and not isinstance(ingredients, str):
        logger.debug(f"Recipe {recipe_id}: ignoring non-text ingredients")
        validated["ingredients"] = ""

    for field in ("name", "instructions", "category"):
        value = record.get(field)
        if value is not None and not isinstance(value, str):
            logger.debug(f"Recipe {recipe_id}: ignoring non-text field '{field}'")
            validated[field] = None

    logger.debug(f"Recipe record validated: {recipe_id}")
    return validated


def validate_email(email: Optional[str]) -> str:
    """
    Validate a participant e-mail address.

    Args:
        email: E-mail address

    Returns:
        str: Trimmed, lowercased address

    Raises:
        ValueError: If the address is empty or malformed
    """
    if not email or not email.strip():
        raise ValueError("E-mail address cannot be empty")

    email = email.strip().lower()
    if len(email) > 254 or not _EMAIL_PATTERN.match(email):
        raise ValueError("Invalid e-mail address")

    return email
