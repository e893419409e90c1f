import jsonpickle
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional


def now() -> str:
    return datetime.now(timezone.utc).isoformat()


def label_selector(labels: Optional[Mapping[str, str]]) -> Optional[str]:
    """Format a label set as an equality based selector string, e.g. ``a=b,c=d``."""
    if not labels:
        return None
    return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))


def sort_dict_keys(d):
    """Recursively sort dictionary keys and handle nested structures."""
    if isinstance(d, dict):
        return {key: sort_dict_keys(value) for key, value in sorted(d.items())}
    elif isinstance(d, list):
        return [sort_dict_keys(item) for item in d]
    else:
        return d


def canonicalize_dict(data) -> str:
    """
    Returns a canonical JSON representation of a dictionary.

    Keys are sorted recursively so the representation stays stable when key
    order varies.
    """
    return jsonpickle.dumps(sort_dict_keys(data), unpicklable=False)


def deep_compare_dict(data1, data2) -> bool:
    """Compare two data structures deeply, ignoring key order.

    Args:
        data1: First data structure (dict, list, or nested combination)
        data2: Second data structure (dict, list, or nested combination)

    Returns:
        True if data structures are equivalent, False otherwise
    """
    if data1 is None and data2 is None:
        return True
    if data1 is None or data2 is None:
        return False
    if not isinstance(data1, type(data2)) and not isinstance(data2, type(data1)):
        return False
    try:
        return canonicalize_dict(data1) == canonicalize_dict(data2)
    except (TypeError, ValueError):
        return data1 == data2


def upsert_condition(conds: Optional[List[Dict]], newc: Dict) -> List[Dict]:
    """In-memory upsert by .type. The new condition replaces the old one, keeping
    lastTransitionTime unless the status flips."""
    conds = list(conds or [])
    for i, c in enumerate(conds):
        if c.get("type") == newc["type"]:
            ltt = c.get("lastTransitionTime") or now()
            if c.get("status") != newc["status"]:
                ltt = now()
            conds[i] = {**newc, "lastTransitionTime": ltt}
            break
    else:
        conds.append({**newc, "lastTransitionTime": now()})
    return conds


def upsert_generation(generations: Optional[List[Dict]], newg: Dict) -> List[Dict]:
    """In-memory merge of a generations ledger entry keyed by group/resource/namespace/name."""
    key = ("group", "resource", "namespace", "name")
    generations = list(generations or [])
    for i, g in enumerate(generations):
        if all(g.get(k) == newg.get(k) for k in key):
            generations[i] = {**g, **newg}
            break
    else:
        generations.append(dict(newg))
    return generations
