# This project was developed with assistance from AI tools.
"""Client interaction log.

Every workflow step that touches a client (link issued, email sent,
session created, identity verified, onboarding completed) leaves an entry
on the client's timeline. Entries are added to the caller's transaction;
the caller commits.
"""

import logging

from db import ClientLog
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

ONBOARDING_TOKEN_ISSUED = "ONBOARDING_TOKEN_ISSUED"
ONBOARDING_EMAIL_SENT = "ONBOARDING_EMAIL_SENT"
ONBOARDING_COMPLETED = "ONBOARDING_COMPLETED"
SIGNATURE_SESSION_CREATED = "SIGNATURE_SESSION_CREATED"
IDENTITY_VERIFIED = "IDENTITY_VERIFIED"


async def write_client_log(
    session: AsyncSession,
    *,
    client_id: int,
    log_type: str,
    title: str,
    content: str | None = None,
    created_by: str | None = None,
) -> ClientLog:
    """Append an entry to a client's interaction log.

    Args:
        session: Database session.
        client_id: Client the entry belongs to.
        log_type: Entry category (one of the module-level constants).
        title: Short headline shown on the timeline.
        content: Optional longer description.
        created_by: Advisor id, when an advisor triggered the event.

    Returns:
        The created ClientLog row (flushed, not committed).
    """
    entry = ClientLog(
        client_id=client_id,
        log_type=log_type,
        title=title,
        content=content,
        created_by=created_by,
    )
    session.add(entry)
    await session.flush()
    logger.debug("Client log %s written for client %s", log_type, client_id)
    return entry
