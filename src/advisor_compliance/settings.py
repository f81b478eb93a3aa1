"""Service settings for the advisor compliance engine.

All settings use the ADVISOR_COMPLIANCE_ prefix and cover:
- Primary PostgreSQL database
- Remote insight-generation service
- Aggregation limits and expiry windows
- Logging
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the advisor compliance engine.

    Environment variable prefix: ADVISOR_COMPLIANCE_
    """

    service_name: str = "advisor-compliance-engine"

    # -------------------------------------------------------------------------
    # Primary database
    # -------------------------------------------------------------------------

    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/advisor_compliance",
        description="Async SQLAlchemy URL for the compliance store.",
    )
    database_pool_size: int = Field(default=10, description="Connection pool size.")
    database_max_overflow: int = Field(
        default=5,
        description="Max overflow connections above database_pool_size.",
    )
    database_pool_timeout: int = Field(
        default=30,
        description="Seconds to wait for a connection before raising an error.",
    )

    # -------------------------------------------------------------------------
    # Remote insight service
    # -------------------------------------------------------------------------

    insight_service_url: str = Field(
        default="",
        description="Endpoint of the remote insight-generation service. "
        "Leave empty to always use the heuristic insights.",
    )
    insight_service_api_key: str = Field(
        default="",
        description="Bearer token sent to the insight service.",
    )
    insight_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for one insight request. A timeout falls back to heuristics.",
    )

    # -------------------------------------------------------------------------
    # Aggregation limits
    # -------------------------------------------------------------------------

    recent_checks_limit: int = Field(
        default=100,
        description="Number of most recent checks loaded per aggregation pass.",
    )
    insight_check_window: int = Field(
        default=20,
        description="Number of most recent checks the failure-rate heuristic inspects.",
    )
    max_document_actions: int = Field(default=3, description="Document-derived next actions cap.")
    max_case_actions: int = Field(default=3, description="Case-derived next actions cap.")

    # -------------------------------------------------------------------------
    # Expiry and ageing windows (days)
    # -------------------------------------------------------------------------

    urgent_expiry_days: int = Field(
        default=7,
        description="Documents expiring within this many days become next actions.",
    )
    critical_expiry_days: int = Field(
        default=3,
        description="Document actions expiring within this many days are critical.",
    )
    expiring_soon_days: int = Field(
        default=30,
        description="Window for the expiring-documents dashboard counter.",
    )
    stale_case_days: int = Field(
        default=30,
        description="Cases open longer than this are reported by the risk heuristic.",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    log_level: str = Field(default="INFO", description="Root log level.")
    json_logs: bool = Field(default=True, description="Emit JSON log lines.")

    model_config = SettingsConfigDict(env_prefix="ADVISOR_COMPLIANCE_")
