# This project was developed with assistance from AI tools.
"""Advisor/client ownership checks shared by every advisor-facing service."""

import logging

from db import Client
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from .errors import ClientNotFound, NotAuthorized

logger = logging.getLogger(__name__)


async def client_belongs_to_advisor(session: AsyncSession, client_id: int, advisor_id: str) -> bool:
    """True when the client exists and is assigned to the advisor."""
    result = await session.execute(
        select(Client.id).where(Client.id == client_id, Client.advisor_id == advisor_id)
    )
    return result.scalar_one_or_none() is not None


async def get_owned_client(session: AsyncSession, user: UserContext, client_id: int) -> Client:
    """Load a client the caller is allowed to act on.

    Admins (``all_clients`` scope) may act on any client; advisors only on
    their own.

    Raises:
        ClientNotFound: No client with that id.
        NotAuthorized: The client belongs to another advisor.
    """
    result = await session.execute(select(Client).where(Client.id == client_id))
    client = result.scalar_one_or_none()
    if client is None:
        raise ClientNotFound(client_id)

    if user.data_scope.all_clients:
        return client
    if client.advisor_id != user.user_id:
        logger.warning(
            "Ownership denied: user=%s attempted client=%s (advisor=%s)",
            user.user_id,
            client_id,
            client.advisor_id,
        )
        raise NotAuthorized("Not authorized to access this client")
    return client
