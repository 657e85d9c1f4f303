"""
Grant Opportunity Schemas
Funding opportunities returned by the Simpler.Grants.gov search API.
"""
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GrantOpportunity(BaseModel):
    """One opportunity as the search API returns it (extra keys ignored)."""

    model_config = ConfigDict(extra="ignore")

    opportunity_id: int
    opportunity_number: str = ""
    opportunity_title: str = ""
    agency_code: str = ""
    agency_name: Optional[str] = None
    close_date: Optional[date] = None
    close_date_description: Optional[str] = None
    award_ceiling: Optional[int] = None
    award_floor: Optional[int] = None
    summary_description: Optional[str] = None
    opportunity_status: str = "posted"
    category: Optional[str] = None
    funding_instrument_type: Optional[str] = None

    @field_validator("award_ceiling", "award_floor", mode="before")
    @classmethod
    def parse_amount(cls, v):
        if v in (None, ""):
            return None
        return int(float(v))


class GrantResult(GrantOpportunity):
    days_until_deadline: Optional[int] = None
    url: str


class GrantSearchResponse(BaseModel):
    grants: List[GrantResult]
    total: int
    using_sample_data: bool


class AgencyOption(BaseModel):
    value: str
    label: str


class GrantSearchParams(BaseModel):
    query: str = ""
    agency: str = "all"
    max_amount: Optional[int] = Field(None, ge=0)


class GrantFilterOptions(BaseModel):
    agencies: List[AgencyOption]
    amount_presets: List[int]
