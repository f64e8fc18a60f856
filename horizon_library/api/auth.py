from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import get_librarian
from ..core.errors import AuthError
from ..core.security import LIBRARIAN_ROLE, Principal, create_access_token, verify_password
from ..database import get_db
from ..models import Librarian
from ..schemas.auth import AccessToken, LoginRequest, PrincipalRead

router = APIRouter(prefix="/api/librarian", tags=["auth"])


@router.post("/login", response_model=AccessToken)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    librarian = db.query(Librarian).filter(Librarian.username == data.username).first()
    if not librarian or not verify_password(data.password, librarian.password_hash):
        raise AuthError("invalid", "Invalid credentials")
    token = create_access_token(librarian.id, LIBRARIAN_ROLE)
    return AccessToken(access_token=token, role=LIBRARIAN_ROLE)


@router.get("/me", response_model=PrincipalRead)
def me(principal: Principal = Depends(get_librarian)):
    return PrincipalRead(id=principal.subject_id, role=principal.role)
