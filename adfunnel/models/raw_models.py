"""ADFUNNEL — Raw Platform Input Models.

Two explicit input variants, one per ad platform, tagged by ``platform``.
Field names follow what each API actually returns; numeric fields are
coerced leniently because platform payloads are frequently incomplete.
"""

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, TypeAdapter, field_validator

from adfunnel.core.numbers import safe_count, safe_float


class MetaAction(BaseModel):
    """One entry of a Meta ``actions`` or ``action_values`` array.

    ``value`` is kept exactly as received; the parser decides how to read it.
    """

    action_type: str = ""
    value: Any = "0"

    @field_validator("action_type", mode="before")
    @classmethod
    def _coerce_action_type(cls, v: Any) -> str:
        return "" if v is None else str(v)


class MetaCampaignInsight(BaseModel):
    """Campaign-level row from the Graph API ``/insights`` edge."""

    model_config = {"extra": "ignore"}

    platform: Literal["meta"] = "meta"
    campaign_id: str = Field(
        default="", validation_alias=AliasChoices("campaign_id", "id")
    )
    campaign_name: str = Field(
        default="", validation_alias=AliasChoices("campaign_name", "name")
    )
    date_start: str = ""
    date_stop: str = ""
    spend: float = 0.0
    impressions: int = 0
    clicks: int = 0
    actions: List[MetaAction] = []
    action_values: List[MetaAction] = []

    @field_validator("spend", mode="before")
    @classmethod
    def _coerce_spend(cls, v: Any) -> float:
        return safe_float(v)

    @field_validator("impressions", "clicks", mode="before")
    @classmethod
    def _coerce_counts(cls, v: Any) -> int:
        return safe_count(v)

    @field_validator("campaign_id", "campaign_name", "date_start", "date_stop", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("actions", "action_values", mode="before")
    @classmethod
    def _coerce_lists(cls, v: Any) -> list:
        if not isinstance(v, list):
            return []
        return [a for a in v if isinstance(a, (dict, MetaAction))]


class MetaPaging(BaseModel):
    model_config = {"extra": "ignore"}

    next: Optional[str] = None


class MetaInsightPage(BaseModel):
    """One page of the ``/insights`` edge: rows plus the link to the next page."""

    model_config = {"extra": "ignore"}

    data: List[MetaCampaignInsight] = []
    paging: MetaPaging = MetaPaging()

    @field_validator("data", mode="before")
    @classmethod
    def _coerce_rows(cls, v: Any) -> list:
        if not isinstance(v, list):
            return []
        return [row for row in v if isinstance(row, dict)]

    @field_validator("paging", mode="before")
    @classmethod
    def _coerce_paging(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}

    @property
    def next_url(self) -> Optional[str]:
        return self.paging.next or None


class GoogleConversionAction(BaseModel):
    """Per conversion-action breakdown of a Google Ads campaign row.

    Google attribution models can assign fractional conversions, so the count
    stays a float until the parser rounds the category totals.
    """

    model_config = {"extra": "ignore"}

    name: str = Field(
        default="",
        validation_alias=AliasChoices("name", "conversion_name", "conversion_action_name"),
    )
    conversions: float = 0.0
    conversion_value: float = Field(
        default=0.0,
        validation_alias=AliasChoices("conversion_value", "all_conversions_value"),
    )

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("conversions", "conversion_value", mode="before")
    @classmethod
    def _coerce_numbers(cls, v: Any) -> float:
        return safe_float(v)


class GoogleCampaignMetrics(BaseModel):
    """Campaign-level row from a Google Ads report.

    ``spend`` must already be in currency units (micros conversion happens
    in the fetch layer).
    """

    model_config = {"extra": "ignore"}

    platform: Literal["google"] = "google"
    campaign_id: str = ""
    campaign_name: str = ""
    date_start: str = ""
    date_stop: str = ""
    spend: float = Field(default=0.0, validation_alias=AliasChoices("spend", "cost"))
    impressions: int = 0
    clicks: int = 0
    conversions: float = 0.0
    conversion_value: float = 0.0
    conversion_actions: List[GoogleConversionAction] = []

    @field_validator("spend", "conversions", "conversion_value", mode="before")
    @classmethod
    def _coerce_floats(cls, v: Any) -> float:
        return safe_float(v)

    @field_validator("impressions", "clicks", mode="before")
    @classmethod
    def _coerce_counts(cls, v: Any) -> int:
        return safe_count(v)

    @field_validator("campaign_id", "campaign_name", "date_start", "date_stop", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("conversion_actions", mode="before")
    @classmethod
    def _coerce_breakdown(cls, v: Any) -> list:
        if not isinstance(v, list):
            return []
        return [a for a in v if isinstance(a, (dict, GoogleConversionAction))]


RawCampaign = Annotated[
    Union[MetaCampaignInsight, GoogleCampaignMetrics],
    Field(discriminator="platform"),
]

_raw_campaign_adapter = TypeAdapter(RawCampaign)


def parse_raw_campaign(row: Any) -> MetaCampaignInsight | GoogleCampaignMetrics:
    """Validate a raw row tagged with ``platform`` into its input variant."""
    if isinstance(row, (MetaCampaignInsight, GoogleCampaignMetrics)):
        return row
    return _raw_campaign_adapter.validate_python(row)
