from fastapi import APIRouter, Depends, Request

from models import SubmissionAck, SubmissionRequest, ErrorResponse
from services.relay import WebhookRelay

router = APIRouter(prefix="/api", tags=["submit"])


def get_relay(request: Request) -> WebhookRelay:
    return request.app.state.relay


@router.post(
    "/submit",
    response_model=SubmissionAck,
    responses={500: {"model": ErrorResponse}},
)
async def submit_lead(submission: SubmissionRequest, relay: WebhookRelay = Depends(get_relay)):
    """
    Forward the lead form to the enrichment workflow.

    Returns once the webhook acknowledges; the enriched record shows up at
    /api/company/{companyName} some time later.
    """
    return await relay.submit(submission)
