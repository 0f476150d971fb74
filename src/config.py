from __future__ import annotations

from functools import cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from domain.token import Address, TokenMetadata


class AppSettings(BaseSettings):
    token_name: str = "WYZToken"
    token_symbol: str = "WYZ"
    token_decimals: int = 18
    # Stand-in for signing credentials: the identity mutations are submitted as.
    default_caller: Address = Address("0x00000000000000000000000000000000000000aa")
    database_url: str = "sqlite:///wyz_token.db"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="WYZ_", env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def token_metadata(self) -> TokenMetadata:
        return TokenMetadata(name=self.token_name, symbol=self.token_symbol, decimals=self.token_decimals)


@cache
def config() -> AppSettings:
    return AppSettings()
