"""
Configuration for the embedding, chat, discovery and assistant services.

The configuration is stored as a TOML file. Each component receives its
section as a value object at construction; API keys are never written to
the file, only the names of the environment variables that hold them.
"""

import os
import tomllib
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

# tomli_w for writing TOML (tomllib is read-only)
try:
    import tomli_w
except ImportError:
    tomli_w = None  # type: ignore


CONFIG_FILENAME = "bookvec.toml"
CONFIG_VERSION = 1

DEFAULT_CATEGORIES = (
    "文學小說", "科學技術", "歷史傳記", "商業管理", "教育學習",
    "藝術設計", "健康生活", "哲學宗教", "法律政治",
)


def _resolve_key(explicit: Optional[str], env_name: str) -> Optional[str]:
    return explicit or os.environ.get(env_name) or None


@dataclass(frozen=True)
class EmbeddingConfig:
    """Remote embedding service (jina-embeddings-v3 by default)."""
    provider: str = "jina"
    url: str = "https://api.jina.ai/v1/embeddings"
    model: str = "jina-embeddings-v3"
    task: str = "text-matching"
    dimension: int = 1024
    timeout: float = 30.0
    api_key_env: str = "JINA_API_KEY"
    api_key: Optional[str] = None

    def resolve_api_key(self) -> Optional[str]:
        return _resolve_key(self.api_key, self.api_key_env)


@dataclass(frozen=True)
class ChatConfig:
    """Chat-completions service used by AI discovery and the assistant."""
    provider: str = "perplexity"
    url: str = "https://api.perplexity.ai/chat/completions"
    model: str = "llama-3.1-sonar-small-128k-online"
    max_tokens: int = 1000
    temperature: float = 0.3
    top_p: float = 0.9
    timeout: float = 60.0
    api_key_env: str = "PERPLEXITY_API_KEY"
    api_key: Optional[str] = None

    def resolve_api_key(self) -> Optional[str]:
        return _resolve_key(self.api_key, self.api_key_env)


@dataclass(frozen=True)
class DiscoveryConfig:
    """External discovery tiers."""
    # Tier 1: AI-ranked discovery
    ai_max_tokens: int = 2000
    ai_temperature: float = 0.2
    ai_top_p: float = 0.9
    ai_domain_filter: tuple[str, ...] = ()
    ai_recency_filter: Optional[str] = None
    max_candidates: int = 10
    # Tier 2: structured book search
    search_url: str = "https://www.googleapis.com/books/v1/volumes"
    search_max_results: int = 10
    search_lang_restrict: Optional[str] = "zh"
    search_timeout: float = 15.0
    search_api_key_env: str = "GOOGLE_BOOKS_API_KEY"
    search_api_key: Optional[str] = None

    def resolve_search_api_key(self) -> Optional[str]:
        return _resolve_key(self.search_api_key, self.search_api_key_env)


@dataclass(frozen=True)
class AssistantConfig:
    """Templates' fallback values. Every failure degrades to one of these."""
    default_tags: tuple[str, ...] = ("一般圖書", "推薦閱讀")
    categories: tuple[str, ...] = DEFAULT_CATEGORIES
    fallback_category: str = "其他"
    placeholder_summary: str = "暫無摘要資訊。"
    apology: str = "抱歉，目前無法回答您的問題。請稍後再試或聯繫圖書館管理員。"
    max_keywords: int = 5
    max_context_items: int = 5
    max_candidate_items: int = 10
    context_description_chars: int = 100


@dataclass
class ServiceConfig:
    """Complete configuration."""
    path: Optional[Path] = None
    version: int = CONFIG_VERSION
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    assistant: AssistantConfig = field(default_factory=AssistantConfig)

    @property
    def config_path(self) -> Optional[Path]:
        """Path to the TOML config file."""
        return self.path / CONFIG_FILENAME if self.path else None


def _parse_section(cls, section: dict[str, Any]):
    """Build a section dataclass, ignoring unknown keys and coercing lists to tuples."""
    known = {f.name: f for f in fields(cls)}
    kwargs = {}
    for key, value in section.items():
        if key not in known or key == "api_key" or key == "search_api_key":
            continue
        if isinstance(value, list):
            value = tuple(value)
        kwargs[key] = value
    return cls(**kwargs)


def _section_to_dict(section) -> dict[str, Any]:
    """Serialize a section, dropping secrets and unset values (TOML has no null)."""
    d = {}
    for key, value in asdict(section).items():
        if key in ("api_key", "search_api_key") or value is None:
            continue
        d[key] = list(value) if isinstance(value, tuple) else value
    return d


def load_config(store_path: Path) -> ServiceConfig:
    """
    Load configuration from a directory.

    Raises:
        FileNotFoundError: If config doesn't exist
        ValueError: If config is invalid or newer than supported
    """
    config_path = store_path / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Error parsing config '{config_path}': {e}") from e

    version = data.get("service", {}).get("version", 1)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    try:
        return ServiceConfig(
            path=store_path,
            version=version,
            embedding=_parse_section(EmbeddingConfig, data.get("embedding", {})),
            chat=_parse_section(ChatConfig, data.get("chat", {})),
            discovery=_parse_section(DiscoveryConfig, data.get("discovery", {})),
            assistant=_parse_section(AssistantConfig, data.get("assistant", {})),
        )
    except TypeError as e:
        raise ValueError(f"Invalid config '{config_path}': {e}") from e


def save_config(config: ServiceConfig) -> None:
    """
    Save configuration to its directory.

    Creates the directory if it doesn't exist.
    """
    if tomli_w is None:
        raise RuntimeError("tomli_w is required to save config. Install with: pip install tomli-w")
    if config.path is None:
        raise ValueError("ServiceConfig.path is not set")

    config.path.mkdir(parents=True, exist_ok=True)

    data = {
        "service": {"version": config.version},
        "embedding": _section_to_dict(config.embedding),
        "chat": _section_to_dict(config.chat),
        "discovery": _section_to_dict(config.discovery),
        "assistant": _section_to_dict(config.assistant),
    }

    with open(config.config_path, "wb") as f:
        tomli_w.dump(data, f)


def load_or_create_config(store_path: Path) -> ServiceConfig:
    """
    Load existing config or create a new one with defaults.

    This is the main entry point for config management.
    """
    config_path = store_path / CONFIG_FILENAME

    if config_path.exists():
        return load_config(store_path)
    config = ServiceConfig(path=store_path)
    save_config(config)
    return config
