"""
Configuration management for LearnForge.

This module centralizes all configuration settings:
- Secrets loaded from environment variables (or a .env file)
- Sensible defaults for development
- Single source of truth for provider selection, session tuning and paths
- Thread-safe token tracking

Core logic never reads the environment directly. The host builds a Config
once and hands the relevant sections to providers, the orchestrator, the
summary aggregator and the notes store.
"""

import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

PROVIDER_OPENAI = "openai"
PROVIDER_GEMINI = "gemini"
PROVIDER_AUTO = "auto"

# Keys shorter than this are treated as unset placeholders
MIN_API_KEY_LENGTH = 6


@dataclass
class ModelConfig:
    """Reasoning provider configuration (backend selection, keys, sampling)."""

    provider: str = field(
        default_factory=lambda: os.getenv("LEARNFORGE_PROVIDER", PROVIDER_AUTO)
    )

    # OpenAI settings
    openai_api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    openai_model: str = field(
        default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    )
    openai_base_url: Optional[str] = field(
        default_factory=lambda: os.getenv("OPENAI_BASE_URL")
    )

    # Gemini settings
    gemini_api_key: str = field(default_factory=lambda: os.getenv("GEMINI_API_KEY", ""))
    gemini_model: str = field(
        default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-1.5-pro")
    )

    max_tokens: int = 4000

    # Per-call temperatures
    extraction_temperature: float = 0.7
    question_temperature: float = 0.8
    evaluation_temperature: float = 0.3
    summary_temperature: float = 0.7

    # Every provider call is abandoned after this many seconds
    request_timeout: float = field(
        default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT", "60.0"))
    )

    @property
    def has_openai(self) -> bool:
        return bool(self.openai_api_key) and len(self.openai_api_key) >= MIN_API_KEY_LENGTH

    @property
    def has_gemini(self) -> bool:
        return bool(self.gemini_api_key) and len(self.gemini_api_key) >= MIN_API_KEY_LENGTH

    def resolve_provider(self) -> str:
        """
        Pick the backend once for the whole session.

        An explicitly requested provider wins when its key is present;
        otherwise OpenAI is preferred when available, and Gemini is the
        final fallback.

        Returns:
            "openai" or "gemini"
        """
        requested = (self.provider or PROVIDER_AUTO).lower()
        if requested == PROVIDER_OPENAI and self.has_openai:
            return PROVIDER_OPENAI
        if requested == PROVIDER_GEMINI and self.has_gemini:
            return PROVIDER_GEMINI
        if self.has_openai:
            return PROVIDER_OPENAI
        return PROVIDER_GEMINI


@dataclass
class SessionConfig:
    """Question session tuning."""

    # Anti-repetition bound for `next`: total generation attempts per step
    max_question_attempts: int = 5

    # Category stamped on every mistake record
    mistake_category: str = "Conceptual"

    # When True, `begin` refuses a concept until all prerequisites are mastered
    enforce_prerequisites: bool = False

    # Seconds the host keeps the concept view open after mastery completes
    mastery_close_delay: float = 2.0


@dataclass
class PathConfig:
    """File system paths - single source of truth for all directories."""

    data_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("LEARNFORGE_DATA_DIR", str(Path(__file__).parent.parent / "data"))
        )
    )

    notes_dir: Path = field(init=False)
    logs_dir: Path = field(init=False)

    def __post_init__(self):
        """Initialize computed paths."""
        self.data_dir = Path(self.data_dir)
        self.notes_dir = self.data_dir / "notes"
        self.logs_dir = self.data_dir / "logs"

    def prepare_filesystem(self):
        """
        Create directories if they don't exist.

        Separated from __post_init__ to avoid side-effects on import.
        Call this explicitly from your app entrypoint.
        """
        for directory in [self.data_dir, self.notes_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)


@dataclass
class LoggingConfig:
    """Logging and metrics configuration with env-driven pricing."""

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_to_file: bool = False
    log_tokens: bool = True

    cost_per_1k_input: float = field(
        default_factory=lambda: float(os.getenv("COST_PER_1K_INPUT", "0.00015"))
    )
    cost_per_1k_output: float = field(
        default_factory=lambda: float(os.getenv("COST_PER_1K_OUTPUT", "0.0006"))
    )


class Config:
    """
    Main configuration class. Singleton pattern.

    Usage:
        from learnforge.config import config

        provider = create_provider(config.model)
        orchestrator = QuestionSessionOrchestrator(provider, config.session)

        # Prepare filesystem (call once at startup)
        config.prepare_fs()
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.paths = PathConfig()
            cls._instance.model = ModelConfig()
            cls._instance.session = SessionConfig()
            cls._instance.logging = LoggingConfig()
        return cls._instance

    def prepare_fs(self):
        """Prepare filesystem (create directories). Call once at startup."""
        self.paths.prepare_filesystem()

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if not (self.model.has_openai or self.model.has_gemini):
            errors.append("Neither OPENAI_API_KEY nor GEMINI_API_KEY is set")

        if self.model.provider.lower() not in {PROVIDER_OPENAI, PROVIDER_GEMINI, PROVIDER_AUTO}:
            errors.append(
                f"provider must be one of openai/gemini/auto, got {self.model.provider!r}"
            )

        for name in [
            "extraction_temperature",
            "question_temperature",
            "evaluation_temperature",
            "summary_temperature",
        ]:
            value = getattr(self.model, name)
            if not (0 <= value <= 2):
                errors.append(f"{name} must be in [0, 2], got {value}")

        if self.model.max_tokens <= 0:
            errors.append(f"max_tokens must be > 0, got {self.model.max_tokens}")

        if self.model.request_timeout <= 0:
            errors.append(
                f"request_timeout must be > 0, got {self.model.request_timeout}"
            )

        if self.session.max_question_attempts < 1:
            errors.append(
                f"max_question_attempts must be >= 1, got {self.session.max_question_attempts}"
            )

        if not self.session.mistake_category.strip():
            errors.append("mistake_category cannot be empty")

        if self.session.mastery_close_delay < 0:
            errors.append(
                f"mastery_close_delay must be >= 0, got {self.session.mastery_close_delay}"
            )

        return errors


# Global config instance
config = Config()


class TokenTracker:
    """
    Thread-safe tracker for token usage and estimated costs.

    Usage:
        from learnforge.config import token_tracker

        token_tracker.add_tokens(input_tokens=100, output_tokens=50)
        print(token_tracker.summary())
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.input_tokens = 0
        self.output_tokens = 0
        self.total_calls = 0

    def add_tokens(self, input_tokens: int, output_tokens: int):
        """Add tokens from an API call (thread-safe)."""
        with self._lock:
            self.input_tokens += input_tokens
            self.output_tokens += output_tokens
            self.total_calls += 1

    def total_tokens(self) -> int:
        """Get total tokens used (thread-safe)."""
        with self._lock:
            return self.input_tokens + self.output_tokens

    def _cost(self, input_tokens: int, output_tokens: int) -> float:
        input_cost = (input_tokens / 1000) * config.logging.cost_per_1k_input
        output_cost = (output_tokens / 1000) * config.logging.cost_per_1k_output
        return input_cost + output_cost

    def estimated_cost(self) -> float:
        """Calculate estimated cost in USD (thread-safe)."""
        with self._lock:
            return self._cost(self.input_tokens, self.output_tokens)

    def summary(self) -> str:
        """Get formatted summary of usage."""
        stats = self.get_stats()
        return (
            "Token Usage Summary:\n"
            f"  API Calls: {stats['calls']}\n"
            f"  Input Tokens: {stats['input_tokens']:,}\n"
            f"  Output Tokens: {stats['output_tokens']:,}\n"
            f"  Total Tokens: {stats['total_tokens']:,}\n"
            f"  Estimated Cost: ${stats['estimated_cost']:.4f}"
        )

    def reset(self):
        """Reset counters (thread-safe)."""
        with self._lock:
            self.input_tokens = 0
            self.output_tokens = 0
            self.total_calls = 0

    def get_stats(self) -> dict:
        """Get current stats as dict (thread-safe)."""
        with self._lock:
            input_tokens = self.input_tokens
            output_tokens = self.output_tokens
            total_calls = self.total_calls
            est_cost = self._cost(input_tokens, output_tokens)

        return {
            "calls": total_calls,
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
            "estimated_cost": est_cost,
        }


# Global token tracker instance
token_tracker = TokenTracker()

