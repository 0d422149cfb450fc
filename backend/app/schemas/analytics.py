from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import Field, model_validator

from app.schemas.common import CamelModel, UTCDateTime

ReportType = Literal["pickup_summary", "waste_analysis", "issue_report", "environmental_report"]


class ReportRequest(CamelModel):
    report_type: ReportType
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None
    # Admins only; everyone else reports on their own community
    community_id: Optional[str] = Field(None, alias="communityId")

    @model_validator(mode='after')
    def check_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("End date must be after start date")
        return self


class ReportResponse(CamelModel):
    id: str
    name: str
    type: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    community_id: Optional[str] = None
    generated_by: str
    summary: Dict[str, Any]
    created_at: datetime
