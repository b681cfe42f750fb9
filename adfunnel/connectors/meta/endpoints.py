"""ADFUNNEL — Meta API Endpoints.

Fetch functions for the Meta Marketing API resources the funnel needs.
Rows come back validated as MetaCampaignInsight, ready for the parser.
"""

import json
from typing import List, Optional

from adfunnel.connectors.meta.client import MetaClient, META_BASE
from adfunnel.models.raw_models import MetaCampaignInsight
from adfunnel.core.logging import get_logger

logger = get_logger("meta.endpoints")

# Fields the funnel parser and aggregator read
INSIGHT_FIELDS = (
    "campaign_name,campaign_id,"
    "impressions,clicks,spend,"
    "actions,action_values"
)


class MetaEndpoints:
    """Fetch raw insight rows from Meta."""

    def __init__(self, client: MetaClient):
        self.client = client
        self.ad_account_id = client.ad_account_id

    # ── Campaign Insights ──

    async def fetch_campaign_insights(
        self,
        date_start: str,
        date_stop: str,
        time_increment: Optional[str] = None,
    ) -> List[MetaCampaignInsight]:
        """Fetch campaign-level insights for a date range.

        ``time_increment="1"`` splits rows per day; the default returns one
        row per campaign for the whole range.
        """
        url = f"{META_BASE}/{self.ad_account_id}/insights"
        params = {
            "fields": INSIGHT_FIELDS,
            "time_range": json.dumps({"since": date_start, "until": date_stop}),
            "level": "campaign",
            "limit": 500,
        }
        if time_increment:
            params["time_increment"] = time_increment
        rows: List[MetaCampaignInsight] = []
        pages = 0
        async for page in self.client.iter_insight_pages(url, params):
            pages += 1
            rows.extend(page.data)
        logger.info(
            f"Fetched {len(rows)} campaign insight records in {pages} page(s)",
            extra={"platform": "meta", "endpoint": url},
        )
        return rows
