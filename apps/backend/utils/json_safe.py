"""
JSON-safe serialization utilities for server-sent events.
Ensures pydantic models, dataclasses and other complex objects become plain dicts.
"""
import dataclasses
import json
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict

from setup_logging_optimized import get_logger

logger = get_logger(__name__)


def to_json_safe(obj: Any) -> Any:
    """
    Convert any object to a JSON-serializable representation.

    Args:
        obj: Any object that needs to be JSON-serializable

    Returns:
        JSON-safe representation of the object
    """
    if obj is None:
        return None

    if isinstance(obj, Enum):
        return to_json_safe(obj.value)

    if isinstance(obj, (str, int, float, bool)):
        return obj

    if isinstance(obj, (datetime, date)):
        return obj.isoformat()

    if isinstance(obj, Decimal):
        return float(obj)

    # Domain objects define their own wire shape
    if hasattr(obj, 'to_payload'):
        return to_json_safe(obj.to_payload())
    if hasattr(obj, 'to_dict'):
        return to_json_safe(obj.to_dict())

    if hasattr(obj, 'model_dump'):
        return to_json_safe(obj.model_dump(exclude_none=True))

    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return to_json_safe(dataclasses.asdict(obj))

    if isinstance(obj, dict):
        return {str(key): to_json_safe(value) for key, value in obj.items()}

    if isinstance(obj, (list, tuple, set)):
        return [to_json_safe(item) for item in obj]

    if hasattr(obj, '__dict__'):
        return to_json_safe(vars(obj))

    logger.warning(f"Falling back to str() for object {type(obj)}")
    return str(obj)


def ensure_json_serializable(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Ensure an entire event payload is JSON-serializable.

    Args:
        data: Event data dictionary

    Returns:
        JSON-safe event data
    """
    try:
        safe_data = to_json_safe(data)
        json.dumps(safe_data)
        return safe_data
    except (TypeError, ValueError) as e:
        logger.error(f"Failed to make event data JSON-safe: {e}")
        return {
            "error": "serialization_failed",
            "original_type": str(type(data)),
            "message": str(e)
        }
