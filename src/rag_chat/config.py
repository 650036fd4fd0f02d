"""
Configuration Management - Centralized configuration for the RAG chat service

Settings come from dataclass defaults, then an optional YAML file, then
environment variables (``.env.local`` and ``.env`` are loaded first).

License: MIT
"""

import os
import threading
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from pathlib import Path
import logging

import yaml
from dotenv import load_dotenv

from .core.prompt import DEFAULT_FALLBACK_ANSWER, DEFAULT_PERSONA
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class EmbeddingConfig:
    """Configuration for embedding generation."""

    model: str = "text-embedding-3-small"
    api_key: Optional[str] = None
    batch_size: int = 100
    max_workers: int = 3
    max_retries: int = 3
    timeout: float = 30.0
    dimension: int = 1536


@dataclass
class VectorStoreConfig:
    """Configuration for the vector index."""

    backend: str = "pinecone"
    url: Optional[str] = None
    token: Optional[str] = None
    index_name: str = "rag-documents"
    namespace: str = ""
    metric: str = "cosine"
    upsert_batch_size: int = 100


@dataclass
class LLMConfig:
    """Configuration for the language model."""

    model: str = "gpt-4o-mini"
    max_tokens: int = 1000
    temperature: float = 0.2
    timeout: float = 60.0


@dataclass
class ChunkingConfig:
    """Configuration for document chunking."""

    chunk_size: int = 1000
    chunk_overlap: int = 100
    source_dir: str = "./dados_musicais"
    extensions: List[str] = field(default_factory=lambda: [".txt"])


@dataclass
class RetrievalConfig:
    """Configuration for query-time retrieval."""

    top_k: int = 4
    max_context_chars: int = 8000


@dataclass
class PromptConfig:
    """Fixed assistant persona and fallback sentence."""

    persona: str = DEFAULT_PERSONA
    fallback_answer: str = DEFAULT_FALLBACK_ANSWER


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format_type: str = "simple"
    log_file: Optional[str] = None


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""

    prometheus_enabled: bool = True
    metrics_path: str = "/metrics"


@dataclass
class RAGConfig:
    """Main RAG chat configuration."""

    environment: str = "development"
    debug: bool = False

    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    vector_store: VectorStoreConfig = field(default_factory=VectorStoreConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    prompt: PromptConfig = field(default_factory=PromptConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    api_host: str = "0.0.0.0"
    api_port: int = 8000


class ConfigManager:
    """
    Configuration manager for loading and validating configuration.
    """

    def __init__(self, config_path: Optional[str] = None, load_env_files: bool = True):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to YAML configuration file (optional)
            load_env_files: Read ``.env.local``/``.env`` into the environment
        """
        self.config_path = config_path
        self.load_env_files = load_env_files
        self._config: Optional[RAGConfig] = None

    def load_config(self) -> RAGConfig:
        """
        Load configuration from files and environment variables.

        Returns:
            RAGConfig instance

        Raises:
            ConfigurationError: If required settings are missing or invalid
        """
        if self._config is not None:
            return self._config

        if self.load_env_files:
            # .env.local wins; load_dotenv never overrides variables already set.
            load_dotenv(Path.cwd() / ".env.local")
            load_dotenv()

        config = RAGConfig()

        if self.config_path:
            config = self._load_from_file(config, self.config_path)

        config = self._load_from_env(config)
        self._validate_config(config)

        self._config = config
        logger.info(f"Configuration loaded for environment: {config.environment}")

        return config

    def _load_from_file(self, config: RAGConfig, file_path: str) -> RAGConfig:
        """Load configuration from YAML file."""
        path = Path(file_path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {file_path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Error loading configuration from {file_path}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Configuration file {file_path} must contain a mapping")

        self._update_config_from_dict(config, file_config)
        logger.info(f"Configuration loaded from file: {file_path}")
        return config

    def _load_from_env(self, config: RAGConfig) -> RAGConfig:
        """Load configuration from environment variables."""
        try:
            config.environment = os.getenv("ENVIRONMENT", config.environment)
            config.debug = os.getenv("DEBUG", str(config.debug)).lower() == "true"

            config.api_host = os.getenv("API_HOST", config.api_host)
            config.api_port = int(os.getenv("API_PORT", str(config.api_port)))

            # Embedding
            config.embedding.api_key = os.getenv("OPENAI_API_KEY", config.embedding.api_key)
            config.embedding.model = os.getenv("EMBEDDING_MODEL", config.embedding.model)
            config.embedding.batch_size = int(
                os.getenv("EMBEDDING_BATCH_SIZE", str(config.embedding.batch_size))
            )
            config.embedding.dimension = int(
                os.getenv("EMBEDDING_DIMENSION", str(config.embedding.dimension))
            )

            # Vector index
            config.vector_store.backend = os.getenv(
                "VECTOR_STORE_BACKEND", config.vector_store.backend
            )
            config.vector_store.url = os.getenv("VECTOR_INDEX_URL", config.vector_store.url)
            config.vector_store.token = os.getenv("VECTOR_INDEX_TOKEN", config.vector_store.token)
            config.vector_store.index_name = os.getenv(
                "VECTOR_INDEX_NAME", config.vector_store.index_name
            )
            config.vector_store.namespace = os.getenv(
                "VECTOR_INDEX_NAMESPACE", config.vector_store.namespace
            )
            config.vector_store.metric = os.getenv("VECTOR_INDEX_METRIC", config.vector_store.metric)

            # LLM
            config.llm.model = os.getenv("LLM_MODEL", config.llm.model)
            config.llm.max_tokens = int(os.getenv("LLM_MAX_TOKENS", str(config.llm.max_tokens)))
            config.llm.temperature = float(
                os.getenv("LLM_TEMPERATURE", str(config.llm.temperature))
            )

            # Chunking
            config.chunking.chunk_size = int(
                os.getenv("CHUNK_SIZE", str(config.chunking.chunk_size))
            )
            config.chunking.chunk_overlap = int(
                os.getenv("CHUNK_OVERLAP", str(config.chunking.chunk_overlap))
            )
            config.chunking.source_dir = os.getenv("SOURCE_DIR", config.chunking.source_dir)

            # Retrieval
            config.retrieval.top_k = int(os.getenv("RETRIEVAL_TOP_K", str(config.retrieval.top_k)))
            config.retrieval.max_context_chars = int(
                os.getenv("MAX_CONTEXT_LENGTH", str(config.retrieval.max_context_chars))
            )

            # Logging
            config.logging.level = os.getenv("LOG_LEVEL", config.logging.level)
            config.logging.format_type = os.getenv("LOG_FORMAT", config.logging.format_type)
            config.logging.log_file = os.getenv("LOG_FILE", config.logging.log_file)

            # Monitoring
            config.monitoring.prometheus_enabled = (
                os.getenv(
                    "PROMETHEUS_ENABLED", str(config.monitoring.prometheus_enabled)
                ).lower()
                == "true"
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting in environment: {e}") from e

        return config

    def _update_config_from_dict(self, config: RAGConfig, config_dict: Dict[str, Any]) -> None:
        """Update configuration from dictionary."""
        for section_name, section_config in config_dict.items():
            if hasattr(config, section_name) and isinstance(section_config, dict):
                section_obj = getattr(config, section_name)
                for key, value in section_config.items():
                    if hasattr(section_obj, key):
                        setattr(section_obj, key, value)
            elif hasattr(config, section_name):
                setattr(config, section_name, section_config)

    def _validate_config(self, config: RAGConfig) -> None:
        """Validate configuration values."""
        errors = []

        # Required credentials
        if not config.vector_store.url:
            errors.append("VECTOR_INDEX_URL is required")

        if not config.vector_store.token:
            errors.append("VECTOR_INDEX_TOKEN is required")

        if not config.embedding.api_key:
            errors.append("OPENAI_API_KEY is required")

        if config.api_port < 1 or config.api_port > 65535:
            errors.append("API port must be between 1 and 65535")

        # Embedding
        if config.embedding.batch_size < 1:
            errors.append("Embedding batch size must be at least 1")

        if config.embedding.dimension < 1:
            errors.append("Embedding dimension must be at least 1")

        # Vector store
        if config.vector_store.backend not in ["pinecone", "chroma"]:
            errors.append("Vector store backend must be one of: pinecone, chroma")

        if config.vector_store.metric not in ["cosine", "dotproduct", "euclidean"]:
            errors.append("Vector index metric must be one of: cosine, dotproduct, euclidean")

        if config.vector_store.upsert_batch_size < 1:
            errors.append("Upsert batch size must be at least 1")

        # Chunking
        if config.chunking.chunk_size < 1:
            errors.append("Chunk size must be at least 1")

        if not (0 <= config.chunking.chunk_overlap < config.chunking.chunk_size):
            errors.append("Chunk overlap must be non-negative and less than chunk size")

        # Retrieval
        if config.retrieval.top_k < 0:
            errors.append("Retrieval top_k cannot be negative")

        if config.retrieval.max_context_chars < 1:
            errors.append("Max context length must be at least 1")

        # LLM
        if config.llm.max_tokens < 1:
            errors.append("LLM max tokens must be at least 1")

        if not (0.0 <= config.llm.temperature <= 2.0):
            errors.append("LLM temperature must be between 0.0 and 2.0")

        # Prompt
        if not config.prompt.fallback_answer.strip():
            errors.append("Fallback answer cannot be empty")

        # Logging
        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if config.logging.level.upper() not in valid_log_levels:
            errors.append(f"Log level must be one of: {', '.join(valid_log_levels)}")

        if errors:
            error_message = "Configuration validation errors:\n" + "\n".join(
                f"- {error}" for error in errors
            )
            raise ConfigurationError(error_message)

    def get_config(self) -> RAGConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            return self.load_config()
        return self._config

    def reload_config(self) -> RAGConfig:
        """Reload configuration from sources."""
        self._config = None
        return self.load_config()

    def to_dict(self, redact: bool = True) -> Dict[str, Any]:
        """Convert configuration to dictionary, hiding credentials by default."""
        config = self.get_config()
        secrets = {"api_key", "token"}

        def dataclass_to_dict(obj):
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    field_name: (
                        "***"
                        if redact and field_name in secrets and getattr(obj, field_name)
                        else dataclass_to_dict(getattr(obj, field_name))
                    )
                    for field_name in obj.__dataclass_fields__
                }
            else:
                return obj

        return dataclass_to_dict(config)


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None
_config_manager_lock = threading.Lock()


def get_config_manager(config_path: Optional[str] = None) -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        with _config_manager_lock:
            if _config_manager is None:
                _config_manager = ConfigManager(config_path)
    return _config_manager


def get_config() -> RAGConfig:
    """Get the current RAG configuration."""
    return get_config_manager().get_config()


def reset_config() -> None:
    """Drop the global configuration manager."""
    global _config_manager
    with _config_manager_lock:
        _config_manager = None
