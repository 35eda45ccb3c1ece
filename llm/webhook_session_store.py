"""
CRM webhook SessionStore.

Posts each completed lead session to a CRM endpoint.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from qualification.models import LeadSession

logger = logging.getLogger(__name__)


class WebhookSessionStore:
    """Pushes qualified leads to a CRM webhook."""

    def __init__(
        self,
        webhook_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @staticmethod
    def build_payload(session: LeadSession) -> Dict[str, Any]:
        lead = session.lead
        return {
            "event": "lead.qualified",
            "session_id": session.session_id,
            "lead_id": lead.lead_id,
            "name": lead.name,
            "phone": lead.phone,
            "source": lead.source,
            "status": session.classification.value,
            "reasoning": session.verdict.rationale,
            "answers": session.answers.snapshot(),
            "transcript": [t.to_dict() for t in session.transcript],
            "business": session.config.name,
            "completed_at": session.completed_at,
        }

    async def on_session_started(self, session: LeadSession) -> None:
        # CRM only wants finished leads
        return None

    async def on_session_completed(self, session: LeadSession) -> None:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key

        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.post(
                self.webhook_url,
                json=self.build_payload(session),
                headers=headers,
                timeout=self.timeout,
            )

        if response.status_code in (200, 201, 202):
            logger.info(f"Lead {session.lead.lead_id} sent to CRM ({session.classification.value})")
        else:
            logger.error(
                f"CRM webhook rejected lead {session.lead.lead_id}: "
                f"{response.status_code} {response.text[:500]}"
            )
