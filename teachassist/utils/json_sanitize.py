import math
from decimal import Decimal
from datetime import datetime, date


def is_nan_or_inf(x) -> bool:
    return isinstance(x, float) and (math.isnan(x) or math.isinf(x))


def deep_clean_json_safe(obj):
    """Make database rows JSON-safe: Decimals to floats, dates to ISO strings, NaN/Inf to 0."""
    if obj is None:
        return None
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, float):
        return 0.0 if is_nan_or_inf(obj) else obj
    if isinstance(obj, int):
        return int(obj)
    if isinstance(obj, Decimal):
        f = float(obj)
        return 0.0 if is_nan_or_inf(f) else f
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {str(k): deep_clean_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [deep_clean_json_safe(v) for v in obj]
    return obj


def contains_nan_inf(obj) -> bool:
    if obj is None:
        return False
    if isinstance(obj, float):
        return is_nan_or_inf(obj)
    if isinstance(obj, dict):
        return any(contains_nan_inf(v) for v in obj.values())
    if isinstance(obj, (list, tuple, set)):
        return any(contains_nan_inf(v) for v in obj)
    return False
