"""
Pydantic models for Context Engine configuration validation.

Each section of the YAML configuration maps onto one model below; the
top-level ``ContextEngineConfig`` ties them together.
"""

from typing import List, Optional
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from enum import Enum


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Provider(str, Enum):
    """Supported generative model providers."""
    GEMINI = "gemini"
    VERTEX = "vertex"
    MOCK = "mock"


class EmbeddingProviderType(str, Enum):
    """Supported embedding providers."""
    GEMINI = "gemini"
    HASH = "hash"


class CredentialSource(str, Enum):
    """Where Vertex AI bearer tokens come from."""
    GCLOUD = "gcloud"
    ENV = "env"
    STATIC = "static"


class AppConfig(BaseModel):
    """Application-level configuration settings."""

    name: str = Field(default="Context Engine MCP", description="Application display name")
    version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    verbose_logging: bool = Field(default=False, description="Enable verbose debug logging")

    log_file: Optional[str] = Field(default=None, description="Optional JSON log file location")
    max_log_size_mb: int = Field(default=10, ge=1, le=1000, description="Maximum log file size")
    backup_count: int = Field(default=5, ge=1, le=100, description="Number of backup log files")

    @field_validator('log_file')
    @classmethod
    def expand_path(cls, v):
        """Expand user home directory in paths."""
        if v is None:
            return v
        return str(Path(v).expanduser())


# Default generation model, referenced by configs/default.yaml as well
DEFAULT_MODEL = "gemini-1.5-flash"
DEFAULT_ANALYSIS_MODEL = "gemini-1.5-pro"


class LLMConfig(BaseModel):
    """Generative model provider configuration."""

    provider: Provider = Field(default=Provider.GEMINI, description="LLM provider")
    model: str = Field(default=DEFAULT_MODEL, description="Model used for classification and replies")
    analysis_model: str = Field(default=DEFAULT_ANALYSIS_MODEL, description="Model used by analysis tools")
    base_url: Optional[str] = Field(default=None, description="Override for the provider API base URL")
    api_key: Optional[str] = Field(default=None, description="Gemini API key")
    project_id: Optional[str] = Field(default=None, description="Google Cloud project for Vertex AI")
    location: str = Field(default="us-central1", description="Vertex AI region")
    credential_source: CredentialSource = Field(default=CredentialSource.GCLOUD, description="Vertex AI token source")
    access_token: Optional[str] = Field(default=None, description="Static bearer token when credential_source is static")

    timeout: float = Field(default=30.0, gt=0.0, le=600.0, description="Per-call timeout in seconds")
    max_retries: int = Field(default=3, ge=0, le=10, description="Maximum retry attempts for transient failures")
    retry_delay: float = Field(default=1.0, ge=0.0, le=10.0, description="Base delay between retries")

    temperature: float = Field(default=0.1, ge=0.0, le=2.0, description="Response randomness")
    max_output_tokens: int = Field(default=2048, ge=1, le=32768, description="Maximum tokens per response")
    max_concurrent_requests: int = Field(default=4, ge=1, le=64, description="Size of the model worker pool")


class EmbeddingsConfig(BaseModel):
    """Embedding provider configuration."""

    provider: EmbeddingProviderType = Field(default=EmbeddingProviderType.GEMINI, description="Embedding provider")
    model: str = Field(default="text-embedding-004", description="Embedding model name")
    dimension: int = Field(default=768, ge=1, le=8192, description="Embedding dimensionality for the hash provider")


class ToolsConfig(BaseModel):
    """Tool system configuration."""

    register_builtin: bool = Field(default=True, description="Register the built-in tool catalogue")
    disabled: List[str] = Field(default_factory=list, description="Tool names registered but disabled")
    timeout_seconds: float = Field(default=60.0, ge=1.0, le=600.0, description="Default timeout for tool execution")


class ContextConfig(BaseModel):
    """Context store configuration."""

    default_tenant: str = Field(default="default", description="Tenant used by the CLI when none is given")

    @field_validator('default_tenant')
    @classmethod
    def validate_tenant(cls, v):
        """Tenant ids must be non-empty."""
        if not v or not v.strip():
            raise ValueError("default_tenant must not be empty")
        return v


class SearchConfig(BaseModel):
    """Similarity search configuration."""

    default_limit: int = Field(default=10, ge=1, le=1000, description="Result limit when none is given")
    default_type: Optional[str] = Field(default=None, description="Metadata type filter when none is given")


class PerformanceConfig(BaseModel):
    """Performance and resource management configuration."""

    command_timeout_seconds: float = Field(default=60.0, gt=0.0, le=3600.0, description="Deadline for one processed command")


class ContextEngineConfig(BaseModel):
    """Main configuration model."""

    model_config = ConfigDict(extra="allow", validate_assignment=True)

    app: AppConfig = Field(default_factory=AppConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    embeddings: EmbeddingsConfig = Field(default_factory=EmbeddingsConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)

    @model_validator(mode='after')
    def validate_config_consistency(self):
        """Validate cross-section configuration consistency."""
        if self.llm.provider == Provider.VERTEX and not self.llm.project_id:
            raise ValueError("llm.project_id is required when llm.provider is 'vertex'")

        if self.llm.credential_source == CredentialSource.STATIC and self.llm.provider == Provider.VERTEX \
                and not self.llm.access_token:
            raise ValueError("llm.access_token is required when llm.credential_source is 'static'")

        return self
