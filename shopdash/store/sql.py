import logging
from typing import Any, Mapping

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopdash.db.database import Base
from shopdash.models.inventory import Product, Sale
from shopdash.store.gateway import (
    INVENTORY,
    SALES,
    Row,
    RowNotFound,
    StoreContext,
    StoreError,
    check_collection,
    parse_order_by,
)

logger = logging.getLogger(__name__)

MODELS: dict[str, type[Base]] = {INVENTORY: Product, SALES: Sale}
PROTECTED_FIELDS = {"id", "user_id", "created_at"}


def _to_row(obj: Base) -> Row:
    return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}


class SqlStore:
    """Row store on top of a SQLAlchemy session. Every write commits on its own."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _model(self, collection: str) -> type[Base]:
        check_collection(collection)
        return MODELS[collection]

    def _column(self, model: type[Base], name: str):
        if name not in model.__table__.columns:
            raise StoreError(f"Unknown column {name!r} on {model.__tablename__}")
        return getattr(model, name)

    def _owned(self, ctx: StoreContext, model: type[Base], row_id: int) -> Base:
        obj = self.db.scalar(select(model).where(model.id == row_id, model.user_id == ctx.user_id))
        if obj is None:
            raise RowNotFound(model.__tablename__, row_id)
        return obj

    def _check_fields(self, model: type[Base], fields: Mapping[str, Any]) -> None:
        for name in fields:
            if name in PROTECTED_FIELDS:
                raise StoreError(f"Field {name!r} cannot be written")
            self._column(model, name)

    def query_rows(
        self,
        ctx: StoreContext,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[Row]:
        model = self._model(collection)
        query = select(model).where(model.user_id == ctx.user_id)
        for name, value in (filters or {}).items():
            query = query.where(self._column(model, name) == value)
        column_name, descending = parse_order_by(order_by)
        if column_name:
            column = self._column(model, column_name)
            query = query.order_by(column.desc() if descending else column.asc(), model.id.asc())
        else:
            query = query.order_by(model.id.asc())
        try:
            return [_to_row(obj) for obj in self.db.scalars(query).all()]
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc

    def insert_row(self, ctx: StoreContext, collection: str, fields: Mapping[str, Any]) -> Row:
        model = self._model(collection)
        self._check_fields(model, fields)
        obj = model(**fields, user_id=ctx.user_id)
        self.db.add(obj)
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("insert into %s failed: %s", collection, exc)
            raise StoreError(str(exc)) from exc
        self.db.refresh(obj)
        return _to_row(obj)

    def update_row(self, ctx: StoreContext, collection: str, row_id: int, fields: Mapping[str, Any]) -> Row:
        model = self._model(collection)
        self._check_fields(model, fields)
        try:
            obj = self._owned(ctx, model, row_id)
            for name, value in fields.items():
                setattr(obj, name, value)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("update of %s/%s failed: %s", collection, row_id, exc)
            raise StoreError(str(exc)) from exc
        self.db.refresh(obj)
        return _to_row(obj)

    def delete_row(self, ctx: StoreContext, collection: str, row_id: int) -> None:
        model = self._model(collection)
        try:
            result = self.db.execute(delete(model).where(model.id == row_id, model.user_id == ctx.user_id))
            if result.rowcount == 0:
                self.db.rollback()
                raise RowNotFound(collection, row_id)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("delete of %s/%s failed: %s", collection, row_id, exc)
            raise StoreError(str(exc)) from exc
