"""AdPulse — Meta API Endpoints.

Fetch functions for the three resources the sync reads: an account's ads,
per-ad insights, and campaign-level insights broken down by age and gender.
"""

from typing import Any, Dict, List

from adpulse.connectors.meta.client import MetaClient
from adpulse.models.sync_models import DateParam, TimeRange

# Fields requested from Meta
AD_FIELDS = (
    "id,name,status,campaign{name},"
    "creative{image_url,thumbnail_url,object_story_spec}"
)
AD_INSIGHT_FIELDS = "spend,impressions,clicks,actions,date_start"
AUDIENCE_INSIGHT_FIELDS = "campaign_name,spend,actions,date_start"
AUDIENCE_BREAKDOWNS = "age,gender"


def account_path(account_id: str) -> str:
    """Graph API node id for an ad account (``act_`` prefixed)."""
    return account_id if account_id.startswith("act_") else f"act_{account_id}"


def date_params(date_param: DateParam) -> Dict[str, str]:
    """Translate a preset or a TimeRange into Graph API query params."""
    if isinstance(date_param, TimeRange):
        return {"time_range": date_param.to_param()}
    return {"date_preset": date_param}


class MetaEndpoints:
    """Resource fetchers on top of a MetaClient."""

    def __init__(self, client: MetaClient, page_size: int = 100):
        self.client = client
        self.page_size = page_size

    async def fetch_ads(self, account_id: str) -> List[Dict[str, Any]]:
        """All ads of an account with campaign name, creative and status."""
        url = self.client.url(f"{account_path(account_id)}/ads")
        params = {"fields": AD_FIELDS, "limit": self.page_size}
        return await self.client._paginated_get(url, params)

    async def fetch_ad_insights(
        self, ad_id: str, date_param: DateParam
    ) -> List[Dict[str, Any]]:
        """Insight rows for one ad over the given preset or range."""
        url = self.client.url(f"{ad_id}/insights")
        params = {"fields": AD_INSIGHT_FIELDS, **date_params(date_param)}
        return await self.client._paginated_get(url, params)

    async def fetch_audience_insights(
        self, account_id: str, date_param: DateParam
    ) -> List[Dict[str, Any]]:
        """Campaign-level insights split by age and gender."""
        url = self.client.url(f"{account_path(account_id)}/insights")
        params = {
            "fields": AUDIENCE_INSIGHT_FIELDS,
            "level": "campaign",
            "breakdowns": AUDIENCE_BREAKDOWNS,
            "limit": self.page_size,
            **date_params(date_param),
        }
        return await self.client._paginated_get(url, params)
