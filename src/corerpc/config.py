"""
Configuration management using pydantic-settings.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from corerpc.models import NetworkType


class RpcSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BITCOIND_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    rpc_url: str = "http://127.0.0.1:8332"
    rpc_user: str = ""
    rpc_password: str = ""
    timeout: float = Field(default=30.0, gt=0, description="RPC call timeout in seconds")

    # Addresses returned by the node must belong to this network
    network: NetworkType = NetworkType.MAINNET

    log_level: str = "INFO"


def get_settings() -> RpcSettings:
    return RpcSettings()
