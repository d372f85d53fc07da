from app.models.base import Base
from app.models.content import Content
from app.models.user import User
from app.models.user_interaction import UserInteraction

__all__ = [
    "Base",
    "User",
    "Content",
    "UserInteraction",
]
