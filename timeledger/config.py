"""Runtime settings read from TIMELEDGER_* environment variables."""

import os
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, ValidationError


class Settings(BaseModel):
    backend: Literal["memory", "sqlite"] = "sqlite"
    db_path: str = "timeledger.db"
    topic: str = "time-entries.v1"
    projector_name: str = "time_entry_summary"
    created_by: str = "user-from-auth"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


_ENV_PREFIX = "TIMELEDGER_"


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from the environment. Unset variables keep their defaults.

    Raises ValueError naming the offending variable on invalid values.
    """
    environ = os.environ if environ is None else environ
    values: dict[str, str] = {}
    for field_name in Settings.model_fields:
        raw = environ.get(_ENV_PREFIX + field_name.upper())
        if raw is None or raw == "":
            continue
        values[field_name] = raw.upper() if field_name == "log_level" else raw
    try:
        return Settings(**values)
    except ValidationError as e:
        names = ", ".join(_ENV_PREFIX + str(err["loc"][0]).upper() for err in e.errors())
        raise ValueError(f"Invalid settings in {names}: {e}") from e
