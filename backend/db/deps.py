"""FastAPI dependencies for the grid API.

`Depends(get_db)` hands each request its own SQLAlchemy Session and closes
it afterwards, even when the handler raises. Tests swap it out through
`app.dependency_overrides[get_db]`.
"""

from typing import Iterator

from sqlalchemy.orm import Session

from .database import SessionLocal


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
