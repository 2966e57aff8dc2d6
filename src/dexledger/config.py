"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CHAIN_ID = 1043


class LedgerSettings(BaseSettings):
    """Liquidity ledger store and policy settings."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    store_path: str = "data/pools.json"
    chain_id: int = DEFAULT_CHAIN_ID
    require_tx_hash: bool = False
    enforce_position_limit: bool = False  # reject withdrawals above the wallet's derived LP


class FaucetSettings(BaseSettings):
    """Faucet delivery and claim throttling settings."""

    model_config = SettingsConfigDict(env_prefix="FAUCET_")

    mode: Literal["paper", "live"] = "paper"
    store_path: str = "data/claims.json"
    chain_id: int = DEFAULT_CHAIN_ID
    rpc_url: str = ""
    private_key: SecretStr = SecretStr("")
    token_address: str = "0x947eE27e29A0c95b0Ab4D8F494dC99AC3e8F2BA2"
    token_decimals: int = 6
    max_amount: int = 100  # whole token units per claim
    cooldown_hours: int = 24
    mint_gas_limit: int = 600_000
    transfer_gas_limit: int = 300_000
    confirm_timeout_seconds: float = 0.0  # 0 returns as soon as the tx is broadcast
    paper_balance: int = 1_000_000  # whole units held by the simulated signer


class PricingSettings(BaseSettings):
    """Quote defaults for the pricing endpoint."""

    model_config = SettingsConfigDict(env_prefix="PRICING_")

    default_slippage_bps: int = 50  # 0.5%


class ServerSettings(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = "0.0.0.0"
    port: int = 8787
    cors_origin: str = "*"


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    ledger: LedgerSettings = LedgerSettings()
    faucet: FaucetSettings = FaucetSettings()
    pricing: PricingSettings = PricingSettings()
    server: ServerSettings = ServerSettings()
