from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Compile target used when the caller does not pick one
    DEFAULT_TARGET: Literal["claude", "openai", "generic"] = "claude"

    # Lint pass marks (quality score out of 100)
    LINT_THRESHOLD: int = 60
    STRICT_THRESHOLD: int = 75
    RELAXED_THRESHOLD: int = 40
    LINT_TOP_ISSUES: int = 5

    # Custom rules
    CUSTOM_RULES_PATH: str = "~/.prompt-optimizer/custom-rules.json"
    MAX_CUSTOM_RULES: int = 25

    # Context compression
    COMPRESSION_TOKEN_BUDGET: int = 8000
    COMPRESSION_MODE: Literal["standard", "aggressive"] = "standard"

    # Tool pruning
    PRUNE_COUNT: int = 5

    # Prompt text is only written to logs when this is on
    LOG_PROMPTS: bool = False

    log_dir: str | None = None
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
