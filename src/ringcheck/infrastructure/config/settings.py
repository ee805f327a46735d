from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["test", "production"]


def _prefixed(name: str) -> AliasChoices:
    return AliasChoices(f"RINGCHECK__{name}", name)


class BaseAppSettings(BaseSettings):
    """
    Common settings for a verification run.

    Loaded by pydantic-settings from ENV/.env. Every key also accepts the
    ``RINGCHECK__`` prefixed spelling.

    Groups:
    - logging (level, JSON rendering, optional rotating file)
    - amount comparison (token decimals, compared precision, rounding mode)
    - order defaults applied while describing a scenario
    - ledger endpoint for the web3 backend
    """

    model_config = SettingsConfigDict(env_file=(".env",), env_file_encoding="utf-8", extra="ignore")

    env: EnvName = Field(default="test")
    log_level: str = Field(alias="LOG_LEVEL", default="INFO", validation_alias=_prefixed("LOG_LEVEL"))
    json_logs: bool = Field(alias="JSON_LOGS", default=False, validation_alias=_prefixed("JSON_LOGS"))
    logging_enabled: bool = Field(alias="LOGGING_ENABLED", default=True, validation_alias=_prefixed("LOGGING_ENABLED"))

    # Rotation options (used mainly when json_logs is true)
    log_file: str | None = Field(alias="LOG_FILE", default=None, validation_alias=_prefixed("LOG_FILE"))
    log_rotation: Literal["time", "size"] = Field(alias="LOG_ROTATION", default="time", validation_alias=_prefixed("LOG_ROTATION"))
    log_max_bytes: int = Field(alias="LOG_MAX_BYTES", default=10_485_760, validation_alias=_prefixed("LOG_MAX_BYTES"))
    log_backup_count: int = Field(alias="LOG_BACKUP_COUNT", default=7, validation_alias=_prefixed("LOG_BACKUP_COUNT"))
    log_rotate_when: str = Field(alias="LOG_ROTATE_WHEN", default="midnight", validation_alias=_prefixed("LOG_ROTATE_WHEN"))
    log_rotate_utc: bool = Field(alias="LOG_ROTATE_UTC", default=True, validation_alias=_prefixed("LOG_ROTATE_UTC"))

    # Fixed-point comparison
    token_decimals: int = Field(alias="TOKEN_DECIMALS", default=18, validation_alias=_prefixed("TOKEN_DECIMALS"))
    amount_precision: int = Field(alias="AMOUNT_PRECISION", default=8, validation_alias=_prefixed("AMOUNT_PRECISION"))
    rounding: str = Field(alias="ROUNDING", default="ROUND_HALF_UP", validation_alias=_prefixed("ROUNDING"))

    # Order defaults
    default_lrc_fee: int = Field(alias="DEFAULT_LRC_FEE", default=10**18, validation_alias=_prefixed("DEFAULT_LRC_FEE"))
    fee_token_symbol: str = Field(alias="FEE_TOKEN_SYMBOL", default="LRC", validation_alias=_prefixed("FEE_TOKEN_SYMBOL"))

    # Ledger endpoint (web3 backend only)
    rpc_url: str = Field(alias="RPC_URL", default="http://127.0.0.1:8545", validation_alias=_prefixed("RPC_URL"))
    scenarios_file: str | None = Field(alias="SCENARIOS_FILE", default=None, validation_alias=_prefixed("SCENARIOS_FILE"))

    @field_validator("amount_precision", "token_decimals")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be >= 0")
        return v


class TestSettings(BaseAppSettings):
    """
    Test profile.

    - DEBUG logging, console renderer
    - Local development node as ledger endpoint
    """

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    env: EnvName = Field(default="test")
    log_level: str = Field(alias="LOG_LEVEL", default="DEBUG", validation_alias=_prefixed("LOG_LEVEL"))
    json_logs: bool = Field(alias="JSON_LOGS", default=False, validation_alias=_prefixed("JSON_LOGS"))


class ProdSettings(BaseAppSettings):
    """
    Production profile (runs against a shared node).

    Requires the ledger endpoint to be set explicitly.
    """

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    env: EnvName = Field(default="production")
    # RPC_URL must come from ENV/secrets; the placeholder keeps static analysis happy
    rpc_url: str = Field(alias="RPC_URL", default="__MISSING_RPC_URL__", validation_alias=_prefixed("RPC_URL"))
    log_level: str = Field(alias="LOG_LEVEL", default="INFO", validation_alias=_prefixed("LOG_LEVEL"))
    json_logs: bool = Field(alias="JSON_LOGS", default=True, validation_alias=_prefixed("JSON_LOGS"))

    @field_validator("rpc_url")
    @classmethod
    def validate_rpc_url(cls, v: str) -> str:
        """Ensure RPC_URL provided for production profile."""
        if v == "__MISSING_RPC_URL__":
            raise ValueError("RPC_URL required")
        return v


# Profiles that never read .env, for isolated tests
class TestSettingsNoFile(TestSettings):
    model_config = SettingsConfigDict(env_file=(), extra="ignore")


class ProdSettingsNoFile(ProdSettings):
    model_config = SettingsConfigDict(env_file=(), extra="ignore")


@lru_cache(maxsize=8)
def get_settings(forced_env: EnvName | None = None, *, ignore_env_file: bool = False) -> BaseAppSettings:
    """
    Cached settings factory driven by ENV.

    Parameters:
    - forced_env: pick a profile explicitly ("test" or "production"), overriding ENV.
    - ignore_env_file: skip reading .env (uses the *NoFile classes).
    """
    import os

    selector: EnvName = forced_env or os.getenv("ENV", "test")  # type: ignore[assignment]
    if selector == "production":
        cls = ProdSettingsNoFile if ignore_env_file else ProdSettings
    else:
        cls = TestSettingsNoFile if ignore_env_file else TestSettings

    instance = cls()
    instance.env = selector
    return instance
