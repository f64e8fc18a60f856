from typing import Optional
import sys

from sqlalchemy.orm import Session

from horizon_library.database import SessionLocal
from horizon_library.core.security import hash_password
from horizon_library.models import Librarian


def ensure_librarian(username: str, password: str, db: Optional[Session] = None) -> Librarian:
    own_session = db is None
    db = db or SessionLocal()
    try:
        lib = db.query(Librarian).filter(Librarian.username == username).first()
        if not lib:
            lib = Librarian(username=username, password_hash=hash_password(password))
            db.add(lib)
            db.commit()
            db.refresh(lib)
            print(f"[OK] Created librarian id={lib.id} username={username}")
        else:
            lib.password_hash = hash_password(password)
            db.commit()
            print(f"[OK] Reset password for librarian: {username}")
        return lib
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python -m horizon_library.scripts.create_librarian <username> <password>")
        sys.exit(1)
    ensure_librarian(sys.argv[1], sys.argv[2])
