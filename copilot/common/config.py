"""
Configuration Management for the Interview Copilot

Loads configuration from ~/.copilot/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field

logger = logging.getLogger("copilot.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".copilot"
CONFIG_PATH = CONFIG_DIR / "config.json"


@dataclass
class LLMConfig:
    """Language model provider configuration"""
    provider: str = "groq"
    groq_api_key: str = ""
    groq_model: str = "llama-3.1-8b-instant"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    google_api_key: str = ""
    google_model: str = "gemini-1.5-flash"
    answer_temperature: float = 0.7
    answer_max_tokens: int = 4000
    gate_temperature: float = 0.3  # low: the gate is a classifier
    gate_max_tokens: int = 200
    extractor_temperature: float = 0.2
    extractor_max_tokens: int = 300
    timeout: float = 30.0

    @property
    def model(self) -> str:
        """Model name for the selected provider"""
        return getattr(self, f"{self.provider}_model", "")

    @property
    def api_key(self) -> str:
        """API key for the selected provider"""
        return getattr(self, f"{self.provider}_api_key", "")


@dataclass
class EmbeddingConfig:
    """Query embedding configuration"""
    mode: str = "google"  # google | openai | femb
    model: str = "models/text-embedding-004"
    api_key: str = ""


@dataclass
class VectorStoreConfig:
    """Document vector index configuration (read-only from this service)"""
    backend: str = "pinecone"  # pinecone | memory
    index_host: str = ""
    api_key: str = ""
    namespace: str = ""
    records_path: str = ""  # memory backend: JSON list of {id, values, metadata}


@dataclass
class WebSearchConfig:
    """Web search provider configuration"""
    provider: str = "tavily"
    api_key: str = ""
    search_depth: str = "basic"


@dataclass
class ExtractionConfig:
    """Question extraction thresholds"""
    remote_threshold: float = 0.4
    local_threshold: float = 0.5
    min_query_length: int = 10
    generated_query_terms: int = 5
    min_keyword_length: int = 3


@dataclass
class RetrievalConfig:
    """Retriever fan-out configuration"""
    top_k: int = 3
    background_keywords: int = 3


@dataclass
class FusionConfig:
    """Context fusion and citation limits"""
    max_citations: int = 4
    context_chars: int = 500
    snippet_chars: int = 150


@dataclass
class ServerConfig:
    """HTTP transport configuration"""
    host: str = "0.0.0.0"
    port: int = 9000
    cors_origins: list = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


@dataclass
class CopilotConfig:
    """Main Copilot configuration"""
    llm: LLMConfig = field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    vector_store: VectorStoreConfig = field(default_factory=VectorStoreConfig)
    web_search: WebSearchConfig = field(default_factory=WebSearchConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    fusion: FusionConfig = field(default_factory=FusionConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def _parse_section(cls, data: dict, name: str):
    """Build a config section dataclass, keeping defaults for missing keys.

    Unknown keys are ignored so that older or newer config files still load.
    """
    section = data.get(name) or {}
    if not isinstance(section, dict):
        logger.warning("Config section '%s' is not an object, using defaults", name)
        return cls()
    known = {k: v for k, v in section.items() if k in cls.__dataclass_fields__}
    return cls(**known)


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section; a bare "api_key" applies to the selected provider."""
    llm = _parse_section(LLMConfig, data, "llm")
    shared_key = (data.get("llm") or {}).get("api_key")
    if shared_key and not llm.api_key:
        setattr(llm, f"{llm.provider}_api_key", shared_key)
    return llm


def _config_path() -> Path:
    override = os.getenv("COPILOT_CONFIG")
    return Path(override).expanduser() if override else CONFIG_PATH


def load_config() -> CopilotConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.copilot/config.json or $COPILOT_CONFIG)
    3. Default values
    """
    config = CopilotConfig()

    path = _config_path()
    if path.exists():
        try:
            with open(path) as f:
                data = json.load(f)

            config.llm = _parse_llm_config(data)
            config.embedding = _parse_section(EmbeddingConfig, data, "embedding")
            config.vector_store = _parse_section(VectorStoreConfig, data, "vector_store")
            config.web_search = _parse_section(WebSearchConfig, data, "web_search")
            config.extraction = _parse_section(ExtractionConfig, data, "extraction")
            config.retrieval = _parse_section(RetrievalConfig, data, "retrieval")
            config.fusion = _parse_section(FusionConfig, data, "fusion")
            config.server = _parse_section(ServerConfig, data, "server")
        except (json.JSONDecodeError, IOError, TypeError) as e:
            logger.warning("Failed to load config file %s: %s", path, e)

    # LLM env var overrides
    _env_llm_map = {
        "GROQ_API_KEY": "groq_api_key",
        "OPENAI_API_KEY": "openai_api_key",
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "GOOGLE_API_KEY": "google_api_key",
        "GEMINI_API_KEY": "google_api_key",
        "COPILOT_LLM_PROVIDER": "provider",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)

    # Model override targets whichever provider is selected after the loop above
    if os.getenv("COPILOT_LLM_MODEL"):
        setattr(config.llm, f"{config.llm.provider}_model", os.getenv("COPILOT_LLM_MODEL"))

    if os.getenv("EMBEDDING_MODE"):
        config.embedding.mode = os.getenv("EMBEDDING_MODE")
    if os.getenv("EMBEDDING_MODEL"):
        config.embedding.model = os.getenv("EMBEDDING_MODEL")
    if not config.embedding.api_key:
        # Embeddings share the provider key unless set explicitly
        if config.embedding.mode == "google":
            config.embedding.api_key = config.llm.google_api_key
        elif config.embedding.mode == "openai":
            config.embedding.api_key = config.llm.openai_api_key

    if os.getenv("PINECONE_API_KEY"):
        config.vector_store.api_key = os.getenv("PINECONE_API_KEY")
    if os.getenv("PINECONE_INDEX_HOST"):
        config.vector_store.index_host = os.getenv("PINECONE_INDEX_HOST")

    if os.getenv("TAVILY_API_KEY"):
        config.web_search.api_key = os.getenv("TAVILY_API_KEY")

    if os.getenv("COPILOT_PORT"):
        config.server.port = int(os.getenv("COPILOT_PORT"))
    if os.getenv("COPILOT_LOG_LEVEL"):
        config.server.log_level = os.getenv("COPILOT_LOG_LEVEL")

    return config
