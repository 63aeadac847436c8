"""AdPulse — Meta Raw → Store Rows Transformer.

Turns ads and insight rows into the three performance record shapes.
Aggregation maps are keyed by NamedTuples rather than joined strings, so a
separator inside a product code or date can never merge two buckets.
"""

from typing import Any, Dict, List, NamedTuple, Optional

from adpulse.core.product_classifier import classify_campaign
from adpulse.core.logging import get_logger

logger = get_logger("meta.transformer")

LEAD_ACTION_TYPE = "lead"
UNKNOWN_BUCKET = "unknown"


class ProductDayKey(NamedTuple):
    date: str
    product_code: str


class AdDayKey(NamedTuple):
    date: str
    ad_id: str
    product_code: str


class AudienceKey(NamedTuple):
    date: str
    product_code: str
    age_range: str
    gender: str


def _safe_float(value: Any) -> float:
    """Safely convert a value to float."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _safe_int(value: Any) -> int:
    return int(_safe_float(value))


def extract_lead_count(row: Dict[str, Any]) -> int:
    """Value of the first ``lead`` action, 0 when there is none."""
    for action in row.get("actions") or []:
        if action.get("action_type") == LEAD_ACTION_TYPE:
            return _safe_int(action.get("value", 0))
    return 0


def extract_image_url(creative: Optional[Dict[str, Any]]) -> Optional[str]:
    """Best-effort representative image for a creative.

    Priority: image_url, thumbnail_url, video_data.image_url,
    link_data.picture, first carousel card picture.
    """
    if not creative:
        return None

    if creative.get("image_url"):
        return creative["image_url"]
    if creative.get("thumbnail_url"):
        return creative["thumbnail_url"]

    spec = creative.get("object_story_spec") or {}
    video_data = spec.get("video_data") or {}
    if video_data.get("image_url"):
        return video_data["image_url"]

    link_data = spec.get("link_data") or {}
    if link_data.get("picture"):
        return link_data["picture"]
    # Carousel: first card stands in for the ad
    children = link_data.get("child_attachments") or []
    if children:
        return children[0].get("picture")

    return None


def campaign_name_of(ad: Dict[str, Any]) -> Optional[str]:
    """Campaign name from a nested ``campaign{name}`` or a flat field."""
    campaign = ad.get("campaign")
    if isinstance(campaign, dict) and campaign.get("name"):
        return campaign["name"]
    return ad.get("campaign_name")


class AdInsightAggregator:
    """Collects per-ad rows and the per-product-per-day rollup.

    Product totals are derived from the same numbers as the ad rows, so for
    one fetch they always equal the sum of their ad rows.
    """

    def __init__(self) -> None:
        self._ads: Dict[AdDayKey, Dict[str, Any]] = {}
        self._products: Dict[ProductDayKey, Dict[str, Any]] = {}

    def add(self, ad: Dict[str, Any], stat: Dict[str, Any]) -> None:
        date = stat.get("date_start")
        if not date:
            logger.warning(f"Skipping insight row without date_start for ad {ad.get('id')}")
            return

        product_code = classify_campaign(campaign_name_of(ad))
        spend = _safe_float(stat.get("spend", 0))
        leads = extract_lead_count(stat)

        ad_key = AdDayKey(date, str(ad.get("id", "")), product_code)
        ad_row = self._ads.get(ad_key)
        if ad_row is None:
            ad_row = self._ads[ad_key] = {
                "date": date,
                "product_code": product_code,
                "ad_id": ad_key.ad_id,
                "ad_name": ad.get("name") or ad.get("ad_name") or "",
                "image_url": extract_image_url(ad.get("creative")),
                "spend": 0.0,
                "meta_leads": 0,
                "status": ad.get("status") or "",
            }
        ad_row["spend"] += spend
        ad_row["meta_leads"] += leads

        product_key = ProductDayKey(date, product_code)
        product_row = self._products.setdefault(
            product_key,
            {"date": date, "product_code": product_code, "spend": 0.0, "meta_leads": 0},
        )
        product_row["spend"] += spend
        product_row["meta_leads"] += leads

    def ad_rows(self) -> List[Dict[str, Any]]:
        return list(self._ads.values())

    def product_rows(self) -> List[Dict[str, Any]]:
        return list(self._products.values())


class AudienceAggregator:
    """Merges campaign rows that fall into the same demographic bucket."""

    def __init__(self) -> None:
        self._buckets: Dict[AudienceKey, Dict[str, Any]] = {}

    def add(self, stat: Dict[str, Any]) -> None:
        date = stat.get("date_start")
        if not date:
            logger.warning("Skipping audience row without date_start")
            return

        key = AudienceKey(
            date,
            classify_campaign(stat.get("campaign_name")),
            str(stat.get("age") or UNKNOWN_BUCKET),
            str(stat.get("gender") or UNKNOWN_BUCKET),
        )
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = self._buckets[key] = {
                "date": key.date,
                "product_code": key.product_code,
                "age_range": key.age_range,
                "gender": key.gender,
                "spend": 0.0,
                "meta_leads": 0,
            }
        bucket["spend"] += _safe_float(stat.get("spend", 0))
        bucket["meta_leads"] += extract_lead_count(stat)

    def rows(self) -> List[Dict[str, Any]]:
        return list(self._buckets.values())
