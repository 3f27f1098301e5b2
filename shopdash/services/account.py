import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopdash.models.inventory import Product, Sale
from shopdash.models.user import User
from shopdash.store.memory import MemoryStore

logger = logging.getLogger(__name__)


class AccountDeletionError(Exception):
    pass


def get_or_create_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user:
        return user
    user = User(id=user_id)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("provisioned user %s", user_id)
    return user


def user_exists(db: Session, user_id: str) -> bool:
    return db.scalar(select(User.id).where(User.id == user_id)) is not None


def delete_user_account(db: Session, user_id: str, store: object | None = None) -> None:
    """Removes the user together with every product and sale they own."""
    try:
        db.execute(delete(Sale).where(Sale.user_id == user_id))
        db.execute(delete(Product).where(Product.user_id == user_id))
        result = db.execute(delete(User).where(User.id == user_id))
        if result.rowcount == 0:
            raise AccountDeletionError("User not found")
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise AccountDeletionError(str(exc)) from exc
    except AccountDeletionError:
        db.rollback()
        raise

    if isinstance(store, MemoryStore):
        store.purge_user(user_id)
    logger.info("deleted account %s", user_id)
