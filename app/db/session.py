from dataclasses import dataclass, field
from typing import Iterable, List, Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings

TENANT_CONTEXT_KEY = "tenant_context"
ALL_PLANTS = "*"


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection so every session sees the same in-memory database
            options["poolclass"] = StaticPool
        return options
    return {"pool_size": settings.DB_POOL_SIZE, "pool_pre_ping": True}


engine = create_engine(
    settings.SQLALCHEMY_DATABASE_URI,
    echo=settings.DB_ECHO,
    **_engine_options(settings.SQLALCHEMY_DATABASE_URI),
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@dataclass
class TenantContext:
    """Row-level security settings pushed into every transaction of a session."""
    user_id: str
    plant_ids: List[str] = field(default_factory=list)
    all_plants: bool = False

    @property
    def plants_setting(self) -> str:
        if self.all_plants:
            return ALL_PLANTS
        return ",".join(self.plant_ids)


def _apply_tenant_settings(connection, context: TenantContext) -> None:
    if connection.dialect.name != "postgresql":
        return
    connection.execute(
        text(
            "select set_config('app.current_user_id', :user_id, true), "
            "set_config('app.accessible_plants', :plants, true)"
        ),
        {"user_id": context.user_id, "plants": context.plants_setting},
    )


@event.listens_for(SessionLocal, "after_begin")
def _on_transaction_begin(session, transaction, connection):
    context = session.info.get(TENANT_CONTEXT_KEY)
    if context is not None:
        _apply_tenant_settings(connection, context)


def bind_tenant_context(
    session: Session,
    user_id,
    plant_ids: Iterable = (),
    all_plants: bool = False,
) -> TenantContext:
    """
    Attach the caller's tenant context to a session.

    The settings are transaction-local, so they are re-issued at the start of
    every transaction; when a transaction is already open they are applied
    to it immediately.
    """
    context = TenantContext(
        user_id=str(user_id),
        plant_ids=[str(plant_id) for plant_id in plant_ids],
        all_plants=all_plants,
    )
    session.info[TENANT_CONTEXT_KEY] = context
    if session.in_transaction():
        _apply_tenant_settings(session.connection(), context)
    return context


def system_context(session: Session) -> TenantContext:
    """Org-wide context for maintenance scripts such as the seeder."""
    return bind_tenant_context(session, "system", all_plants=True)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
