"""
Pytest configuration to ensure paths are set up correctly for tests.

This allows imports like `from handlers import health_check` to work
when running tests, simulating the Lambda environment where code
is deployed from the src/ directory.
"""

import os
import sys
from datetime import date
from pathlib import Path

import boto3
import pytest


def _ensure_paths_on_sys_path() -> None:
    """Add repository root AND src/ to sys.path if missing.

    The src/ directory is added to simulate Lambda's import behavior,
    where Code.from_asset("src") makes src/ the root of the package.
    """
    repo_root = Path(__file__).resolve().parents[1]
    src_root = repo_root / "src"

    # Add repo root first (for imports like infrastructure.*)
    root_str = str(repo_root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)

    # Add src/ for Lambda-style imports (from handlers import ...)
    src_str = str(src_root)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


_ensure_paths_on_sys_path()

# Ensure boto3 has offline-friendly defaults so tests do not require AWS access.
os.environ.setdefault("AWS_REGION", "eu-west-2")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-2")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_SESSION_TOKEN", "test")
os.environ.setdefault("ENVIRONMENT", "dev")

# No database in unit tests: services fall back to empty snapshots.
os.environ.pop("DATABASE_URL", None)
os.environ.pop("DB_SECRET_ARN", None)
os.environ.pop("SNAPSHOT_BUCKET", None)
os.environ.setdefault("COMPLAINT_FACT_VIEW", "customer_intelligence")
os.environ.setdefault("CUSTOMER_SIGNAL_TABLE", "customer_risk_signals")
os.environ.setdefault("RISK_PROFILE_TABLE", "customer_risk_profiles")

# Create a default boto3 session so resources/clients do not error during import.
boto3.setup_default_session(region_name="eu-west-2")


@pytest.fixture
def make_complaint():
    """Factory for complaint fact rows with sensible defaults."""
    from models.complaint import ComplaintRecord

    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "complaint_id": f"C{counter['n']:04d}",
            "customer_id": "CUST001",
            "complaint_date": date(2024, 6, 1),
            "segment": "Standard",
            "signup_date": date(2023, 1, 1),
        }
        fields.update(overrides)
        return ComplaintRecord(**fields)

    return _make
