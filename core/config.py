# =============================================================================
# core/config.py  —  Runtime Settings
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads the server's configuration from the environment ONCE and freezes it
#   into a Settings object.  The bridge receives that object at construction
#   time; nothing else in core/ touches os.environ.
#
# ENVIRONMENT VARIABLES:
#   PERPLEXITY_API_KEY   → bearer credential (blank or unset = missing)
#   PERPLEXITY_MODEL     → model identifier (default: sonar-pro)
#   PERPLEXITY_API_URL   → chat-completions endpoint
#   PERPLEXITY_TIMEOUT   → HTTP timeout in seconds (default: 30)
#   LOG_LEVEL            → logging level name (default: INFO)
#
# A missing API key is NOT a startup error.  The server still starts and
# lists its tool; each call then fails with an invalid-request error.
# =============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_API_URL = "https://api.perplexity.ai/chat/completions"
DEFAULT_MODEL = "sonar-pro"
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class Settings:
    """Immutable server configuration."""

    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = "INFO"

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build Settings from environment variables.

        Args:
            environ: Mapping to read from.  Defaults to os.environ.

        Raises:
            ValueError: If PERPLEXITY_TIMEOUT is set but is not a positive number.
        """
        env = os.environ if environ is None else environ

        api_key = (env.get("PERPLEXITY_API_KEY") or "").strip() or None

        raw_timeout = (env.get("PERPLEXITY_TIMEOUT") or "").strip()
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise ValueError(
                    f"PERPLEXITY_TIMEOUT must be a number of seconds, got {raw_timeout!r}"
                ) from None
            if timeout <= 0:
                raise ValueError(f"PERPLEXITY_TIMEOUT must be positive, got {timeout}")
        else:
            timeout = DEFAULT_TIMEOUT_SECONDS

        return cls(
            api_key=api_key,
            model=(env.get("PERPLEXITY_MODEL") or "").strip() or DEFAULT_MODEL,
            api_url=(env.get("PERPLEXITY_API_URL") or "").strip() or DEFAULT_API_URL,
            timeout_seconds=timeout,
            log_level=(env.get("LOG_LEVEL") or "").strip().upper() or "INFO",
        )

    def __repr__(self) -> str:
        # Never print the credential itself.
        key = "set" if self.has_credential else "missing"
        return (
            f"Settings(api_key=<{key}>, model={self.model!r}, api_url={self.api_url!r}, "
            f"timeout_seconds={self.timeout_seconds}, log_level={self.log_level!r})"
        )
