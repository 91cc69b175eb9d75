"""Knockout qualification slots: allocation across groups and persistence."""

import json
import logging
from typing import Optional

from ttdraw.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

DEFAULT_QUALIFIERS_PER_GROUP = 2


def allocate_qualifiers(group_sizes: dict[str, int], qualifiers_needed: int) -> dict[str, int]:
    """Split the open knockout slots across groups.

    This is a remainder distribution, NOT a proportional one: every group
    gets the same base share, and the first ``qualifiers_needed % n`` groups
    (in the mapping's order) get one extra. Each share is then clamped to the
    group's size, so slots a small group cannot use are simply lost.

    Args:
        group_sizes: Ordered mapping of group name to number of players
        qualifiers_needed: Knockout slots left open after seeding

    Returns:
        Mapping of group name to number of qualifiers

    Examples:
        >>> allocate_qualifiers({"A": 4, "B": 4, "C": 4}, 8)
        {'A': 3, 'B': 3, 'C': 2}
        >>> allocate_qualifiers({"A": 1, "B": 5}, 6)
        {'A': 1, 'B': 3}
        >>> allocate_qualifiers({}, 8)
        {}
    """
    num_groups = len(group_sizes)
    if num_groups == 0:
        return {}

    base, extra = divmod(max(qualifiers_needed, 0), num_groups)

    rules = {}
    for idx, (group_name, size) in enumerate(group_sizes.items()):
        share = base + 1 if idx < extra else base
        rules[group_name] = min(share, size)
    return rules


def serialize_qualification_rules(rules: dict[str, int]) -> str:
    """Serialize rules for storage on the tournament record."""
    return json.dumps(rules)


def parse_qualification_rules(payload: Optional[str]) -> dict[str, int]:
    """Parse a stored qualification rules payload.

    Args:
        payload: JSON object mapping group name to qualifier count

    Returns:
        Mapping of group name to qualifier count

    Raises:
        InvalidInputError: If the payload is missing, not JSON, not an object,
            or holds anything other than non-negative integer counts
    """
    if payload is None or not str(payload).strip():
        raise InvalidInputError("Qualification rules payload is empty")

    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Qualification rules are not valid JSON: {e}")

    if not isinstance(data, dict):
        raise InvalidInputError(f"Qualification rules must be an object, got {type(data).__name__}")

    rules = {}
    for group_name, count in data.items():
        # bool is an int subclass
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise InvalidInputError(f"Invalid qualifier count for group {group_name!r}: {count!r}")
        rules[str(group_name)] = count
    return rules


def resolve_qualification_rules(
    payload: Optional[str],
    group_names: list[str],
    default: int = DEFAULT_QUALIFIERS_PER_GROUP,
) -> dict[str, int]:
    """Qualifier count for each group, falling back to ``default``.

    A malformed or absent payload is logged and replaced by ``default`` for
    every group; it is never surfaced to the caller. Groups missing from an
    otherwise valid payload also get ``default``.

    Args:
        payload: Stored qualification rules (may be None)
        group_names: Groups that need a count
        default: Qualifiers per group when no rule applies

    Returns:
        Mapping of every name in group_names to a qualifier count
    """
    try:
        rules = parse_qualification_rules(payload)
    except InvalidInputError as e:
        logger.warning("Using %d qualifiers per group: %s", default, e)
        rules = {}

    return {name: rules.get(name, default) for name in group_names}
