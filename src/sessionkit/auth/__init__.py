from .models import Role, Session, SignInResult, User
from .service import AuthService

__all__ = ["AuthService", "Role", "Session", "SignInResult", "User"]
