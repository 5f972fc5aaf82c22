"""API key resolution."""

import os
from collections.abc import Mapping

from fusionimg.domain.constants import API_KEY_ENV_VARS


def resolve_api_key(
    explicit: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """Return the API key to use, or None if nothing is configured.

    Precedence: explicit override (CLI flag or config file) > GEMINI_API_KEY
    > GOOGLE_API_KEY > API_KEY.
    """
    if explicit and explicit.strip():
        return explicit.strip()

    env = os.environ if environ is None else environ
    for name in API_KEY_ENV_VARS:
        value = env.get(name)
        if value and value.strip():
            return value.strip()
    return None
