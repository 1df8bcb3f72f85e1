from typing import Any, Dict, Mapping, Optional

from app.core.exceptions import InvalidInput


def _clean_choice(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInput("Answer choices must be strings.", {"choice": repr(value)})
    value = value.strip()
    return value or None


def _clean_position(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidInput("Question positions must be integers.", {"position": repr(value)})
    try:
        position = int(value)
    except (TypeError, ValueError):
        raise InvalidInput("Question positions must be integers.", {"position": repr(value)})
    if position < 1:
        raise InvalidInput("Question positions start at 1.", {"position": position})
    return position


def normalize_answers(raw: Any) -> Dict[int, Optional[str]]:
    """Turn a client answer payload into the canonical ``{position: choice}`` map.

    Two shapes are accepted: a flat mapping (``{"1": "A", "2": null}``) or a
    list of objects (``[{"position": 1, "choice": "A"}]``). Positions are
    1-based; empty strings count as blank. A later entry for the same position
    overrides an earlier one.
    """
    if raw is None:
        return {}

    if isinstance(raw, Mapping):
        items = raw.items()
    elif isinstance(raw, (list, tuple)):
        items = []
        for entry in raw:
            if isinstance(entry, Mapping):
                if "position" not in entry:
                    raise InvalidInput("Each answer needs a 'position'.", {"answer": dict(entry)})
                items.append((entry["position"], entry.get("choice")))
            elif hasattr(entry, "position"):
                items.append((entry.position, getattr(entry, "choice", None)))
            else:
                raise InvalidInput("Unsupported answer entry.", {"answer": repr(entry)})
    else:
        raise InvalidInput("Answers must be a mapping or a list.", {"type": type(raw).__name__})

    normalized: Dict[int, Optional[str]] = {}
    for position, choice in items:
        normalized[_clean_position(position)] = _clean_choice(choice)
    return normalized
