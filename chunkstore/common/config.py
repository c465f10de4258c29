from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping

ENV_FILE = Path(".env")

PATH_SEPARATOR = "/"
ACL_SCOPES: tuple[str, ...] = ("bucket", "object")


def _read_env_file(path: Path = ENV_FILE) -> dict[str, str]:
    values: dict[str, str] = {}
    if not path.exists():
        return values
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            values[key] = value
    return values


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def normalize_prefix(prefix: str) -> str:
    return prefix if prefix.endswith(PATH_SEPARATOR) else prefix + PATH_SEPARATOR


@dataclass(frozen=True)
class StorageConfig:
    """Immutable settings for one chunk storage instance."""

    S3_ENDPOINT_OVERRIDE: bool = False
    S3_ENDPOINT_URL: str = "https://obs.cn-east-3.myhuaweicloud.com"
    S3_CONFIG_URI: str = ""
    S3_ACCESS_KEY_ID: str = ""
    S3_SECRET_ACCESS_KEY: str = ""
    S3_REGION: str = "cn-east-3"
    S3_BUCKET: str = ""
    S3_PREFIX: str = PATH_SEPARATOR
    S3_USE_NONE_MATCH: bool = False
    S3_ASSUME_ROLE_ENABLED: bool = False
    S3_ROLE: str = ""
    S3_USE_SSL: bool = True
    S3_ADDRESSING_STYLE: str = "path"
    S3_CONNECT_TIMEOUT: int = 10
    S3_READ_TIMEOUT: int = 60
    CHUNK_ACL_SCOPE: str = "bucket"

    def __post_init__(self) -> None:
        # frozen: normalized values have to go through object.__setattr__
        object.__setattr__(self, "S3_PREFIX", normalize_prefix(self.S3_PREFIX))
        scope = self.CHUNK_ACL_SCOPE.strip().lower()
        if scope not in ACL_SCOPES:
            raise ValueError(
                f"CHUNK_ACL_SCOPE must be one of {', '.join(ACL_SCOPES)}; got {self.CHUNK_ACL_SCOPE!r}."
            )
        object.__setattr__(self, "CHUNK_ACL_SCOPE", scope)
        if self.S3_ASSUME_ROLE_ENABLED and not self.S3_ROLE:
            raise ValueError("S3_ROLE is required when S3_ASSUME_ROLE_ENABLED is set.")

    @property
    def endpoint_url(self) -> str | None:
        """Endpoint handed to the client; ``None`` means the SDK regional default."""
        if self.S3_ENDPOINT_OVERRIDE and self.S3_ENDPOINT_URL:
            return self.S3_ENDPOINT_URL
        return None

    @classmethod
    def from_environment(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        env_file: Path = ENV_FILE,
    ) -> "StorageConfig":
        # .env values only fill gaps; the process environment is never modified
        source: dict[str, str] = _read_env_file(env_file)
        source.update(os.environ if environ is None else environ)

        return cls(
            S3_ENDPOINT_OVERRIDE=_as_bool(
                source.get("S3_ENDPOINT_OVERRIDE"), cls.S3_ENDPOINT_OVERRIDE
            ),
            S3_ENDPOINT_URL=source.get("S3_ENDPOINT_URL", cls.S3_ENDPOINT_URL),
            S3_CONFIG_URI=source.get("S3_CONFIG_URI", cls.S3_CONFIG_URI),
            S3_ACCESS_KEY_ID=source.get("S3_ACCESS_KEY_ID", cls.S3_ACCESS_KEY_ID),
            S3_SECRET_ACCESS_KEY=source.get(
                "S3_SECRET_ACCESS_KEY", cls.S3_SECRET_ACCESS_KEY
            ),
            S3_REGION=source.get("S3_REGION", cls.S3_REGION),
            S3_BUCKET=source.get("S3_BUCKET", cls.S3_BUCKET),
            S3_PREFIX=source.get("S3_PREFIX", cls.S3_PREFIX),
            S3_USE_NONE_MATCH=_as_bool(
                source.get("S3_USE_NONE_MATCH"), cls.S3_USE_NONE_MATCH
            ),
            S3_ASSUME_ROLE_ENABLED=_as_bool(
                source.get("S3_ASSUME_ROLE_ENABLED"), cls.S3_ASSUME_ROLE_ENABLED
            ),
            S3_ROLE=source.get("S3_ROLE", cls.S3_ROLE),
            S3_USE_SSL=_as_bool(source.get("S3_USE_SSL"), cls.S3_USE_SSL),
            S3_ADDRESSING_STYLE=source.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            S3_CONNECT_TIMEOUT=int(
                source.get("S3_CONNECT_TIMEOUT", cls.S3_CONNECT_TIMEOUT)
            ),
            S3_READ_TIMEOUT=int(source.get("S3_READ_TIMEOUT", cls.S3_READ_TIMEOUT)),
            CHUNK_ACL_SCOPE=source.get("CHUNK_ACL_SCOPE", cls.CHUNK_ACL_SCOPE),
        )


@lru_cache(maxsize=1)
def get_config() -> StorageConfig:
    return StorageConfig.from_environment()
