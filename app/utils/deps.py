from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.constants import RoleEnum
from app.core.database import SessionLocal, get_db
from app.core.security import decode_access_token
from app.crud.user import user as user_crud
from app.schemas.token import TokenPayload
from app.schemas.user import User, UserContext
from app.utils.clock import Clock, utc_now

http_bearer = HTTPBearer()

def get_transactional_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

def get_clock() -> Clock:
    """Source of "now" for timer reconciliation; overridden in tests."""
    return utc_now

def get_current_user_with_context(
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials = Depends(http_bearer)
) -> UserContext:
    try:
        payload = decode_access_token(credentials.credentials)
        token_data = TokenPayload(**payload)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    user = user_crud.get(db, id=token_data.sub)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    # The stored role wins over whatever the token claims
    return UserContext(user=User.model_validate(user), role=RoleEnum(user.role))

def require_admin(context: UserContext = Depends(get_current_user_with_context)) -> UserContext:
    if not context.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acesso negado. Apenas administradores podem acessar esta página."
        )
    return context
