"""Runtime settings read from the environment.

A ``.env`` file in the working directory is loaded first, so a till can
be configured without exporting variables by hand. Real environment
variables win over the file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from retailpos.domain.exceptions import ValidationError
from retailpos.domain.service.checkout_sequencer import FailurePolicy

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"
DEFAULT_API_TIMEOUT = 10.0

STOCK_SYNC_OPTIMISTIC = "optimistic"
STOCK_SYNC_REFETCH = "refetch"


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    api_url: str | None = None
    api_token: str | None = None
    api_timeout: float = DEFAULT_API_TIMEOUT
    failure_policy: FailurePolicy = FailurePolicy.HALT
    stock_sync: str = STOCK_SYNC_OPTIMISTIC
    log_level: str = "WARNING"

    @property
    def uses_http_backend(self) -> bool:
        return bool(self.api_url)


def load_settings(env_file: str | None = None) -> Settings:
    load_dotenv(env_file, override=False)

    try:
        failure_policy = FailurePolicy(
            os.getenv("RETAILPOS_FAILURE_POLICY", FailurePolicy.HALT.value).strip().lower()
        )
    except ValueError as exc:
        options = ", ".join(p.value for p in FailurePolicy)
        raise ValidationError(
            f"RETAILPOS_FAILURE_POLICY must be one of: {options}"
        ) from exc

    stock_sync = os.getenv("RETAILPOS_STOCK_SYNC", STOCK_SYNC_OPTIMISTIC).strip().lower()
    if stock_sync not in (STOCK_SYNC_OPTIMISTIC, STOCK_SYNC_REFETCH):
        raise ValidationError(
            f"RETAILPOS_STOCK_SYNC must be '{STOCK_SYNC_OPTIMISTIC}' or '{STOCK_SYNC_REFETCH}'"
        )

    raw_timeout = os.getenv("RETAILPOS_API_TIMEOUT", str(DEFAULT_API_TIMEOUT))
    try:
        api_timeout = float(raw_timeout)
    except ValueError as exc:
        raise ValidationError(f"Invalid RETAILPOS_API_TIMEOUT: {raw_timeout!r}") from exc

    data_dir = os.getenv("RETAILPOS_DATA_DIR")
    return Settings(
        data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR,
        api_url=os.getenv("RETAILPOS_API_URL") or None,
        api_token=os.getenv("RETAILPOS_API_TOKEN") or None,
        api_timeout=api_timeout,
        failure_policy=failure_policy,
        stock_sync=stock_sync,
        log_level=os.getenv("RETAILPOS_LOG_LEVEL", "WARNING").upper(),
    )
