"""FastAPI dependencies shared by the routers."""
from fastapi import Depends
from sqlalchemy.orm import Session

from labconsole.database import get_db
from labconsole.store import LabStore


def get_store(db: Session = Depends(get_db)) -> LabStore:
    """One LabStore per request, bound to the request's session."""
    return LabStore(db)
