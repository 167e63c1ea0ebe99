"""
ORM models.

``routers`` is owned by the inventory application; the agent only reads it.
``system_logs`` holds the agent's durable collection log.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from telemetry_agent.db.base import Base


class Router(Base):
    """A managed router (device registry row)."""

    __tablename__ = "routers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Router {self.ip_address}>"


class SystemLog(Base):
    """Collection event log (durable copy of WARNING/ERROR events)."""

    __tablename__ = "system_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    level: Mapped[str] = mapped_column(String(20), index=True, nullable=False)
    source: Mapped[str] = mapped_column(String(50), index=True, nullable=False)
    module: Mapped[str | None] = mapped_column(String(200), nullable=True)
    router_host: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    summary: Mapped[str] = mapped_column(String(500), nullable=False)
    detail: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=text("CURRENT_TIMESTAMP"), index=True,
    )

    def __repr__(self) -> str:
        return f"<SystemLog [{self.level}] {self.source}: {self.summary[:30]}>"
