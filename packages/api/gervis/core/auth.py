# This project was developed with assistance from AI tools.
"""Pure auth utility functions with no FastAPI or HTTP dependencies."""

from db.enums import UserRole

from ..schemas.auth import DataScope


def build_data_scope(role: UserRole, user_id: str) -> DataScope:
    """Build data scope rules based on the user's role."""
    if role == UserRole.ADMIN:
        return DataScope(all_clients=True)
    if role == UserRole.ADVISOR:
        return DataScope(advisor_id=user_id)
    return DataScope()
