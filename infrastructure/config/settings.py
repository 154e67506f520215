"""
Environment-specific configuration settings.

Cost-optimized defaults for development/testing.
"""

from dataclasses import dataclass
import os


@dataclass
class Settings:
    """Application settings with cost-optimized defaults."""

    # Environment
    environment: str = "dev"
    aws_region: str = "eu-west-2"  # Default AWS region

    # Warehouse objects read and written by the scoring run
    complaint_fact_view: str = "customer_intelligence"
    customer_signal_table: str = "customer_risk_signals"
    risk_profile_table: str = "customer_risk_profiles"

    # Nightly full recompute (EventBridge cron, UTC)
    recompute_schedule: str = "cron(0 2 * * ? *)"

    # Database Configuration (Cost-optimized)
    db_instance_class: str = "t3.micro"  # Free tier eligible
    db_allocated_storage: int = 20  # Minimum GB

    # Lambda Configuration
    lambda_memory_mb: int = 512
    lambda_timeout_seconds: int = 30
    recompute_timeout_seconds: int = 300

    # Cache Configuration
    cache_ttl_seconds: int = 300  # 5 minutes
    cache_max_size: int = 100

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ.get("ENVIRONMENT", "dev")
        schedule = os.environ.get("RECOMPUTE_SCHEDULE", cls.recompute_schedule)

        # Production overrides
        if env == "prod":
            return cls(
                environment="prod",
                recompute_schedule=schedule,
                db_instance_class="t3.small",  # Upgrade for prod
                db_allocated_storage=50,
                lambda_memory_mb=1024,
                lambda_timeout_seconds=60,
                recompute_timeout_seconds=900,
            )

        return cls(environment=env, recompute_schedule=schedule)

    def lambda_environment(self) -> dict:
        """Runtime variables shared by every Lambda in the stack."""
        return {
            "ENVIRONMENT": self.environment,
            "COMPLAINT_FACT_VIEW": self.complaint_fact_view,
            "CUSTOMER_SIGNAL_TABLE": self.customer_signal_table,
            "RISK_PROFILE_TABLE": self.risk_profile_table,
            "CACHE_TTL_SECONDS": str(self.cache_ttl_seconds),
            "CACHE_MAX_SIZE": str(self.cache_max_size),
        }
