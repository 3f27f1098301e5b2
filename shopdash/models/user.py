from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from shopdash.db.database import Base


class User(Base):
    __tablename__ = "users"

    # Subject claim issued by the identity provider.
    id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)
    email: Mapped[str | None] = mapped_column(String(320), unique=True, index=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
