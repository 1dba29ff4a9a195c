"""Service settings for labor-compliance-engine.

All settings use the LABOR_COMPLIANCE_ environment prefix and cover:
- Primary PostgreSQL database (balances, submissions, knowledge, check records)
- Gemini model access for the AI augmentation step
- Compliance check tuning (knowledge context size, history limits, audit retries)
- Logging output format
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for labor-compliance-engine.

    Environment variable prefix: LABOR_COMPLIANCE_
    """

    service_name: str = "labor-compliance-engine"

    # -------------------------------------------------------------------------
    # Primary database
    # -------------------------------------------------------------------------

    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/labor_compliance",
        description="SQLAlchemy async URL for the database holding leave balances, "
        "workflow submissions, compliance knowledge, and compliance check records.",
    )
    db_pool_size: int = Field(default=5, description="Connection pool size.")
    db_max_overflow: int = Field(default=5, description="Max overflow connections above db_pool_size.")
    db_pool_timeout: int = Field(
        default=30,
        description="Seconds to wait for a connection before raising an error.",
    )

    # -------------------------------------------------------------------------
    # AI augmentation (Gemini)
    # -------------------------------------------------------------------------

    gemini_api_key: str = Field(
        default="",
        description="Gemini API key. Leave empty to run with the AI step disabled "
        "(results are then reported as degraded for ai_compliance).",
    )
    gemini_model: str = Field(default="gemini-2.5-flash", description="Gemini model name.")
    ai_temperature: float = Field(default=0.1, description="Sampling temperature for the compliance prompt.")
    ai_timeout_seconds: float = Field(
        default=20.0,
        description="Hard timeout for one model call. On expiry the AI step is skipped "
        "and the rule-based verdict is returned.",
    )
    knowledge_context_limit: int = Field(
        default=10,
        description="Maximum number of knowledge entries embedded in the model prompt.",
    )

    # -------------------------------------------------------------------------
    # Compliance checks
    # -------------------------------------------------------------------------

    timezone: str = Field(
        default="Asia/Taipei",
        description="IANA zone that defines 'today' for evaluation year and the AI prompt date.",
    )
    history_default_limit: int = Field(default=50, description="Default page size for check history.")
    history_max_limit: int = Field(default=200, description="Upper bound for check history page size.")
    audit_write_attempts: int = Field(
        default=3,
        description="Attempts to persist one result's check records before giving up.",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    log_level: str = Field(default="INFO", description="Root log level.")
    log_json: bool = Field(default=True, description="Render logs as JSON lines (False for console).")

    model_config = SettingsConfigDict(env_prefix="LABOR_COMPLIANCE_")
