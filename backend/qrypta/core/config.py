"""
Configuration management using Pydantic Settings

Settings mirrors the environment (and a .env file in the working directory).
PipelineConfig is the validated, immutable snapshot handed to the pipeline;
nothing below the CLI reads the environment directly.
"""
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from qrypta.components.validation import is_address_like
from qrypta.core.chains import CHAIN_CHOICES, CHAINS, ChainKey
from qrypta.core.errors import ConfigurationError

ENV_FILE = Path.cwd() / ".env"
# Real environment wins over .env
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "qrypta-pqc"
    reference_project: str = Field(default="QRYPTA", description="Project field of the reference record")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="text",
        description="Log format: 'json' for structured logging, 'text' for plain text"
    )
    log_module_levels: Optional[str] = Field(
        default=None,
        description='Module-specific log levels (JSON string, e.g., {"qrypta.services": "DEBUG"})'
    )
    log_file_enabled: bool = Field(default=False, description="Enable file logging")
    log_file_path: str = Field(default="logs/qrypta.log", description="Path to log file")
    log_file_retention: int = Field(default=30, ge=1, description="Number of days to keep log files")
    log_sensitive_data: bool = Field(
        default=False,
        description="Disable masking of keys and tokens in logs - NOT RECOMMENDED"
    )

    # Proving service
    prover_url: Optional[str] = Field(default=None, description="Proving service base URL")
    prover_timeout_seconds: float = Field(default=300.0, gt=0, description="Prover HTTP timeout (seconds)")
    default_deadline_minutes: int = Field(default=30, ge=1, description="Proof deadline sent to the prover")

    # Signing
    owner_pk: Optional[SecretStr] = Field(default=None, description="Signing private key")

    # Chains
    rpc_eth: Optional[str] = Field(default=None, description="Ethereum RPC endpoint")
    rpc_bnb: Optional[str] = Field(default=None, description="BNB Chain RPC endpoint")
    qryp_contract_eth: Optional[str] = Field(default=None, description="Contract address on Ethereum")
    qryp_contract_bnb: Optional[str] = Field(default=None, description="Contract address on BNB Chain")

    # Confirmation
    confirmation_timeout_seconds: float = Field(default=180.0, gt=0, description="Receipt wait timeout (seconds)")
    confirmation_poll_seconds: float = Field(default=2.0, gt=0, description="Receipt poll interval (seconds)")

    @field_validator(
        "prover_url", "rpc_eth", "rpc_bnb", "qryp_contract_eth", "qryp_contract_bnb",
        mode="before",
    )
    @classmethod
    def strip_blank(cls, v):
        """Treat whitespace-only values as unset"""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    def rpc_url_for(self, chain: ChainKey) -> Optional[str]:
        return getattr(self, CHAINS[chain].rpc_env.lower())

    def contract_for(self, chain: ChainKey) -> Optional[str]:
        return getattr(self, CHAINS[chain].contract_env.lower())

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True
    )


class ChainEndpoint(BaseModel):
    """RPC endpoint and contract address for one chain"""
    model_config = ConfigDict(frozen=True)

    chain: ChainKey
    rpc_url: str
    contract_address: str


class PipelineConfig(BaseModel):
    """Immutable configuration for a pipeline run"""
    model_config = ConfigDict(frozen=True)

    prover_url: str
    signing_credential: SecretStr
    endpoints: Dict[ChainKey, ChainEndpoint]
    deadline_minutes: int = Field(default=30, ge=1)
    reference_project: str = "QRYPTA"
    decimals: int = 18
    prover_timeout_seconds: float = 300.0
    confirmation_timeout_seconds: float = 180.0
    confirmation_poll_seconds: float = 2.0

    @property
    def available_chains(self) -> List[ChainKey]:
        """Configured chains in prompt order"""
        return [key for key in CHAIN_CHOICES if key in self.endpoints]

    def endpoint(self, chain: ChainKey) -> ChainEndpoint:
        chain = ChainKey(chain)
        try:
            return self.endpoints[chain]
        except KeyError:
            info = CHAINS[chain]
            raise ConfigurationError(
                f"{info.label} is not configured (set {info.rpc_env} and {info.contract_env})",
                setting=info.rpc_env,
            ) from None

    @classmethod
    def from_settings(cls, settings: Settings, required_chain: Optional[ChainKey] = None) -> "PipelineConfig":
        """
        Validate settings and freeze them into a PipelineConfig

        A chain is usable only when both its RPC URL and a well-formed contract
        address are set. There are no fallback endpoints.

        Args:
            settings: Loaded settings
            required_chain: Chain that must be usable (e.g. preselected on the CLI)

        Returns:
            PipelineConfig

        Raises:
            ConfigurationError: a required value is missing or malformed
        """
        if not settings.prover_url:
            raise ConfigurationError("Missing env var: PROVER_URL", setting="PROVER_URL")
        if settings.owner_pk is None or not settings.owner_pk.get_secret_value().strip():
            raise ConfigurationError("Missing env var: OWNER_PK", setting="OWNER_PK")

        endpoints: Dict[ChainKey, ChainEndpoint] = {}
        for key, info in CHAINS.items():
            rpc_url = settings.rpc_url_for(key)
            contract = settings.contract_for(key)
            if contract and not is_address_like(contract):
                raise ConfigurationError(
                    f"{info.contract_env} is not a valid address: {contract!r}",
                    setting=info.contract_env,
                )
            if rpc_url and contract:
                endpoints[key] = ChainEndpoint(chain=key, rpc_url=rpc_url, contract_address=contract)

        if required_chain is not None:
            required_chain = ChainKey(required_chain)
            if required_chain not in endpoints:
                info = CHAINS[required_chain]
                missing = info.rpc_env if not settings.rpc_url_for(required_chain) else info.contract_env
                raise ConfigurationError(f"Missing env var: {missing}", setting=missing)
        if not endpoints:
            raise ConfigurationError(
                "No chain configured: set RPC_<CHAIN> and QRYP_CONTRACT_<CHAIN> for at least one chain"
            )

        return cls(
            prover_url=settings.prover_url,
            signing_credential=SecretStr(settings.owner_pk.get_secret_value().strip()),
            endpoints=endpoints,
            deadline_minutes=settings.default_deadline_minutes,
            reference_project=settings.reference_project,
            prover_timeout_seconds=settings.prover_timeout_seconds,
            confirmation_timeout_seconds=settings.confirmation_timeout_seconds,
            confirmation_poll_seconds=settings.confirmation_poll_seconds,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
