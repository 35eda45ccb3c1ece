"""
Lead dashboard API Routes for the lead qualifier.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from ..services import get_services
from qualification.models import Classification

logger = logging.getLogger(__name__)

router = APIRouter()


# Models
class LeadSummary(BaseModel):
    """One row of the leads dashboard."""
    session_id: str
    lead_id: str
    name: Optional[str]
    phone: Optional[str]
    source: str
    status: Classification
    state: str
    answered: int
    total_questions: int
    created_at: str
    completed_at: Optional[str] = None


class LeadStats(BaseModel):
    total: int
    hot: int
    cold: int
    invalid: int
    pending: int


# Endpoints
@router.get("/leads", response_model=List[LeadSummary])
async def list_leads(
    status: Optional[Classification] = Query(default=None, description="Filter by classification"),
    limit: int = Query(default=50, ge=1, le=500),
):
    """Leads with their current classification, newest first."""
    snapshots = sorted(get_services().list_snapshots(), key=lambda s: s["created_at"], reverse=True)
    if status is not None:
        snapshots = [s for s in snapshots if s["classification"] == status.value]

    summaries = []
    for snapshot in snapshots[:limit]:
        lead = snapshot["lead"]
        summaries.append(LeadSummary(
            session_id=snapshot["session_id"],
            lead_id=lead["lead_id"],
            name=lead["name"],
            phone=lead["phone"],
            source=lead["source"],
            status=snapshot["classification"],
            state=snapshot["state"],
            answered=snapshot["progress"]["answered"],
            total_questions=snapshot["progress"]["total"],
            created_at=snapshot["created_at"],
            completed_at=snapshot["completed_at"],
        ))
    return summaries


@router.get("/leads/stats", response_model=LeadStats)
async def lead_stats():
    """Lead counts per classification."""
    snapshots = get_services().list_snapshots()
    counts = {label: 0 for label in Classification}
    for snapshot in snapshots:
        counts[Classification(snapshot["classification"])] += 1

    return LeadStats(
        total=len(snapshots),
        hot=counts[Classification.HOT],
        cold=counts[Classification.COLD],
        invalid=counts[Classification.INVALID],
        pending=counts[Classification.PENDING],
    )
