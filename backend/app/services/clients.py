"""Business logic for billed clients."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, schemas


class ClientService:
    """Encapsulates CRUD operations for clients."""

    @staticmethod
    def list_clients(
        db: Session,
        *,
        skip: int = 0,
        limit: int = 100,
        search: Optional[str] = None,
    ) -> Tuple[Iterable[models.Client], int]:
        query = db.query(models.Client)

        if search:
            normalized = f"%{search.lower()}%"
            query = query.filter(func.lower(models.Client.name).like(normalized))

        total = query.count()
        items = (
            query.order_by(models.Client.name)
            .offset(max(skip, 0))
            .limit(max(limit, 1))
            .all()
        )
        return items, total

    @staticmethod
    def get_client(db: Session, client_id: str) -> Optional[models.Client]:
        return db.query(models.Client).filter(models.Client.id == client_id).first()

    @staticmethod
    def create_client(db: Session, data: schemas.ClientCreate) -> models.Client:
        client = models.Client(**data.model_dump())
        db.add(client)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(client)
        return client
