"""``{{NAME}}`` placeholder substitution for boot templates."""

from __future__ import annotations

import re
from typing import Mapping

from acornforge.core.errors import BuildError

_PLACEHOLDER = re.compile(r"\{\{([A-Z0-9_]+)\}\}")


def render_template(template: str, values: Mapping[str, str]) -> str:
    """Replace every ``{{NAME}}`` with ``values[NAME]``.

    A placeholder without a value is an error, so a template and its
    caller cannot silently drift apart.
    """
    missing = sorted({m for m in _PLACEHOLDER.findall(template) if m not in values})
    if missing:
        raise BuildError(f"Template placeholders without a value: {', '.join(missing)}")
    return _PLACEHOLDER.sub(lambda m: values[m.group(1)], template)
