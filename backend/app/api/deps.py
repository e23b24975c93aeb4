from __future__ import annotations

from typing import Iterator

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from backend.app.core.errors import UnauthorizedError
from backend.app.db.session import SessionLocal
from backend.services.ledger import resolve_company_id


def get_db() -> Iterator[Session]:
    """Session par requête ; les endpoints de reporting ne font que lire."""
    with SessionLocal() as db:
        yield db


def get_current_company_id(
    db: Session = Depends(get_db),
    user_email: str | None = Header(default=None, alias="X-User-Email"),
) -> int:
    """
    Entreprise de l'utilisateur courant.

    L'authentification est faite en amont (gateway) qui transmet l'email
    de l'utilisateur dans X-User-Email.
    """
    if not user_email or not user_email.strip():
        raise UnauthorizedError("Usuari no autenticat")
    return resolve_company_id(db, user_email)
