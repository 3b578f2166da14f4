"""
Text encoding of embedding vectors.

The encoded form is a compact JSON array, which is what the catalog
store persists in its ``vector`` column.
"""

import json
import logging
import math
from typing import Optional

from .types import Vector, to_float32

logger = logging.getLogger(__name__)


def encode(vector: Vector) -> str:
    """Serialize a vector as a JSON array."""
    return json.dumps(to_float32(vector), separators=(",", ":"))


def decode(text: Optional[str]) -> Vector:
    """
    Parse an encoded vector.

    Returns an empty vector for None, empty or malformed input; never raises.
    """
    if text is None or not text.strip():
        return []
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        logger.error("Error decoding vector %r: %s", text[:100], e)
        return []
    if not isinstance(data, list):
        logger.error("Encoded vector is not a list: %r", text[:100])
        return []
    if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in data):
        logger.error("Encoded vector has non-numeric values: %r", text[:100])
        return []
    vector = to_float32(data)
    # Finite doubles beyond the float32 range become inf when narrowed
    if not all(math.isfinite(v) for v in vector):
        logger.error("Encoded vector has non-finite values: %r", text[:100])
        return []
    return vector
