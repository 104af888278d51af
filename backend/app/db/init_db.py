"""One-time setup: apply SQL migrations in filename order, create the admin account, seed examples.

Run from the backend directory with ``python -m app.db.init_db``.
"""
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from app.db.session import engine, SessionLocal
from app.models.user import AdminUser
from app.models.resource import Resource
from app.core.config import settings
from app.core.logging import setup_logging
from app.core.qr import qr_code_for
from app.core.security import hash_password

logger = logging.getLogger(__name__)

DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"

SAMPLE_RESOURCES = [
    {
        "title": "User Manual - Model X100",
        "description": "Complete user guide for the X100 medical device",
        "category": "Medical Devices",
        "type": "manual",
        "file_url": "https://example.com/manual-x100.pdf",
        "file_name": "manual-x100.pdf",
    },
    {
        "title": "Product Brochure - X100 Series",
        "description": "Overview of the X100 series features and specifications",
        "category": "Medical Devices",
        "type": "brochure",
        "file_url": "https://example.com/brochure-x100.pdf",
        "file_name": "brochure-x100.pdf",
    },
]


def migrations_dir() -> Path:
    return Path(settings.MIGRATIONS_DIR) if settings.MIGRATIONS_DIR else DEFAULT_MIGRATIONS_DIR


def split_statements(sql: str) -> list[str]:
    """Splits a SQL script on ``;`` outside quotes and ``--`` comments.

    Single-quoted literals and double-quoted identifiers are honoured;
    dollar-quoted (``$$``) function bodies are not, so keep them out of migrations.
    """
    statements, buf = [], []
    quote = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote is None and sql.startswith("--", i):
            end = sql.find("\n", i)
            i = len(sql) if end == -1 else end
            continue
        if ch in "'\"":
            if quote is None:
                quote = ch
            elif quote == ch:
                quote = None
        if ch == ";" and quote is None:
            stmt = "".join(buf).strip()
            if stmt:
                statements.append(stmt)
            buf = []
        else:
            buf.append(ch)
        i += 1
    tail = "".join(buf).strip()
    if tail:
        statements.append(tail)
    return statements


def apply_migrations(directory: Path, bind: Engine = engine) -> list[str]:
    """Applies every not yet applied ``*.sql`` file of ``directory``, sorted by filename."""
    files = sorted(p for p in directory.glob("*.sql") if p.is_file())
    applied_now = []
    with bind.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE IF NOT EXISTS schema_migrations ("
                "filename VARCHAR(255) PRIMARY KEY, applied_at TIMESTAMP NOT NULL)"
            )
        )
        done = {row[0] for row in conn.execute(text("SELECT filename FROM schema_migrations"))}
    for path in files:
        if path.name in done:
            continue
        logger.info("Applying migration %s", path.name)
        with bind.begin() as conn:
            for stmt in split_statements(path.read_text(encoding="utf-8")):
                conn.exec_driver_sql(stmt)
            conn.execute(
                text("INSERT INTO schema_migrations (filename, applied_at) VALUES (:f, :t)"),
                {"f": path.name, "t": datetime.now(timezone.utc)},
            )
        applied_now.append(path.name)
    return applied_now


def ensure_admin(db: Session) -> AdminUser | None:
    admin = db.query(AdminUser).filter(AdminUser.email == settings.ADMIN_EMAIL.lower()).first()
    if admin:
        return admin
    if not settings.ADMIN_PASSWORD:
        logger.warning("ADMIN_PASSWORD not set, skipping admin account creation")
        return None
    admin = AdminUser(email=settings.ADMIN_EMAIL.lower(), password_hash=hash_password(settings.ADMIN_PASSWORD), is_active=True)
    db.add(admin)
    db.flush()
    logger.info("Created admin account %s", admin.email)
    return admin


def seed(db: Session) -> int:
    """Inserts the example resources missing by title; returns how many were added."""
    added = 0
    for sample in SAMPLE_RESOURCES:
        exists = db.query(Resource).filter(Resource.title == sample["title"]).first()
        if exists:
            continue
        r = Resource(
            **sample,
            translations=[{"language": "EN", "file_url": sample["file_url"], "file_name": sample["file_name"]}],
        )
        db.add(r)
        db.flush()
        r.qr_code = qr_code_for(r.id, r.file_url)
        added += 1
    return added


def wait_for_db(max_retries: int = 30, delay_seconds: int = 2):
    """Loop until DB is reachable to avoid container start flapping when Postgres is not ready."""
    for attempt in range(1, max_retries + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
                return
        except Exception:
            if attempt == max_retries:
                raise
            logger.info("Database not ready (attempt %d/%d)", attempt, max_retries)
            time.sleep(delay_seconds)


def main():
    setup_logging()
    wait_for_db()
    applied = apply_migrations(migrations_dir())
    logger.info("Applied %d migration(s)", len(applied))
    db = SessionLocal()
    try:
        ensure_admin(db)
        if settings.SEED_SAMPLE_DATA:
            logger.info("Inserted %d sample resource(s)", seed(db))
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    main()
