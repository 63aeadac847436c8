"""AdPulse — Store Models.

Tables written by the sync job and read by the dashboard. Every performance
table carries a unique constraint on its natural key so the bulk upsert can
target it with ON CONFLICT — re-running a day replaces values, never adds.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import SQLModel, Field, UniqueConstraint


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConfigToken(SQLModel, table=True):
    """Provider credential (one row per provider)."""

    __tablename__ = "config_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    provider: str = Field(unique=True, index=True, description="e.g. facebook")
    token_type: str = Field(
        index=True, description="short_lived | long_lived | api_key"
    )
    access_token: str
    updated_at: datetime = Field(default_factory=_utcnow)


class ProductPerformanceDaily(SQLModel, table=True):
    """Spend and Meta leads per product per day."""

    __tablename__ = "product_performance_daily"
    __table_args__ = (
        UniqueConstraint("date", "product_code", name="uq_product_performance_daily"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    date: str = Field(index=True, description="YYYY-MM-DD")
    product_code: str = Field(index=True)
    spend: float = 0.0
    meta_leads: int = 0
    updated_at: datetime = Field(default_factory=_utcnow)


class AdPerformanceDaily(SQLModel, table=True):
    """Spend, Meta leads and creative reference per ad per day."""

    __tablename__ = "ad_performance_daily"
    __table_args__ = (
        UniqueConstraint(
            "date", "ad_id", "product_code", name="uq_ad_performance_daily"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    date: str = Field(index=True, description="YYYY-MM-DD")
    ad_id: str = Field(index=True)
    product_code: str = Field(index=True)
    ad_name: str = ""
    image_url: Optional[str] = None
    spend: float = 0.0
    meta_leads: int = 0
    status: str = Field(default="", description="Ad status as reported by Meta")
    updated_at: datetime = Field(default_factory=_utcnow)


class AudienceBreakdownDaily(SQLModel, table=True):
    """Spend and Meta leads per product / age range / gender per day."""

    __tablename__ = "audience_breakdown_daily"
    __table_args__ = (
        UniqueConstraint(
            "date",
            "product_code",
            "age_range",
            "gender",
            name="uq_audience_breakdown_daily",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    date: str = Field(index=True, description="YYYY-MM-DD")
    product_code: str = Field(index=True)
    age_range: str = Field(description="Meta age bucket, e.g. 25-34")
    gender: str = Field(description="male | female | unknown")
    spend: float = 0.0
    meta_leads: int = 0
    updated_at: datetime = Field(default_factory=_utcnow)


# Conflict keys used by the bulk upsert, in constraint order
PRODUCT_PERFORMANCE_KEY = ("date", "product_code")
AD_PERFORMANCE_KEY = ("date", "ad_id", "product_code")
AUDIENCE_BREAKDOWN_KEY = ("date", "product_code", "age_range", "gender")
