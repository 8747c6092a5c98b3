from app.models.company import Company
from app.models.user import User
from app.models.reset_token import ResetToken

__all__ = [
    "Company",
    "User",
    "ResetToken",
]
