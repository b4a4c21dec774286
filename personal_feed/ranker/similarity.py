"""Vector parsing and cosine similarity."""

import json
import math
from collections.abc import Sequence


def parse_embedding(value: object) -> tuple[float, ...] | None:
    """Normalize a stored embedding into a float tuple.

    The store returns vectors either as JSON arrays or as their text form
    (``"[0.1,0.2,...]"``). Anything that does not parse into a non-empty
    list of finite numbers becomes None.

    Args:
        value: Raw embedding value from a store row.

    Returns:
        Parsed vector, or None if missing or malformed.
    """
    if value is None:
        return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            value = json.loads(text)
        except ValueError:
            return None

    if not isinstance(value, list | tuple) or not value:
        return None

    vector: list[float] = []
    for component in value:
        if isinstance(component, bool) or not isinstance(component, int | float):
            return None
        number = float(component)
        if not math.isfinite(number):
            return None
        vector.append(number)
    return tuple(vector)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity clamped to [0, 1].

    Mismatched dimensions and zero-norm vectors yield 0.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        Similarity in [0, 1].
    """
    if len(a) != len(b) or not a:
        return 0.0

    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    similarity = dot / (norm_a * norm_b)
    if not math.isfinite(similarity):
        return 0.0
    return max(0.0, min(1.0, similarity))
