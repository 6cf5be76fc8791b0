"""Map legacy argument names onto their current names.

Callers get a new mapping back instead of having their own bindings rewritten:
downstream code only ever sees canonical names.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Dict, Mapping, Optional, Tuple

from boostctl.general.constants import DEPRECATED_PARAMS, DEPRECATION_SENTINEL
from boostctl.train.errors import ConfigError, ConflictError

logger = logging.getLogger(__name__)


def match_deprecated(name: str, table: Mapping[str, str] = DEPRECATED_PARAMS) -> Optional[Tuple[str, bool]]:
    """Return ``(old_name, exact)`` for ``name``, or None when it is not deprecated.

    Exact matches win. Otherwise ``name`` must be a prefix of exactly one old
    name; a prefix shared by several rows raises ConfigError.
    """
    if not name:
        return None
    if name in table:
        return name, True
    candidates = [old for old in table if old.startswith(name)]
    if len(candidates) > 1:
        raise ConfigError(
            f"'{name}' is an ambiguous abbreviation of deprecated parameters {sorted(candidates)}. "
            "Please use the full parameter name."
        )
    if candidates:
        return candidates[0], False
    return None


def resolve_deprecated_args(supplied: Mapping[str, Any], table: Mapping[str, str] = DEPRECATED_PARAMS) -> Dict[str, Any]:
    """Rewrite deprecated names in ``supplied`` to their replacements.

    Non-deprecated names pass through unchanged. Deprecated names whose
    replacement is the DUMMY sentinel are dropped.
    """
    resolved: Dict[str, Any] = {}
    renamed: Dict[str, str] = {}
    for name, value in supplied.items():
        match = match_deprecated(name, table)
        if match is None:
            if name in renamed:
                raise ConflictError(
                    f"'{renamed[name]}' is a deprecated alias of '{name}'; supply only one of them."
                )
            resolved[name] = value
            continue

        old_name, exact = match
        new_name = table[old_name]
        if not exact:
            msg = f"'{name}' was partially matched to '{old_name}'"
            logger.warning(msg)
            warnings.warn(msg, UserWarning, stacklevel=2)
        msg = f"'{old_name}' is deprecated. Use '{new_name}' instead."
        if new_name == DEPRECATION_SENTINEL:
            msg = f"'{old_name}' is deprecated and has no effect."
        logger.warning(msg)
        warnings.warn(msg, FutureWarning, stacklevel=2)

        if new_name == DEPRECATION_SENTINEL:
            continue
        if new_name in resolved:
            raise ConflictError(
                f"'{name}' is a deprecated alias of '{new_name}'; supply only one of them."
            )
        resolved[new_name] = value
        renamed[new_name] = name
    return resolved


__all__ = ["match_deprecated", "resolve_deprecated_args"]
