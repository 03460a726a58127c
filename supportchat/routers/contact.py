"""
Contact Router
==============

Receives the lead-capture form rendered under pricing answers.
"""

import logging

from fastapi import APIRouter, Depends

from supportchat.core.auth import verify_widget_key
from supportchat.models.chat import ContactFormResponse, ContactFormSubmission

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ContactFormResponse,
    dependencies=[Depends(verify_widget_key)],
)
async def submit_contact(form: ContactFormSubmission):
    logger.info(
        "Contact form submitted",
        extra={"lead.company": form.company_name, "lead.email_domain": form.email.rsplit("@", 1)[-1]},
    )
    return ContactFormResponse(
        success=True,
        message="We'll contact you with pricing details soon.",
    )
