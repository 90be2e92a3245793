# ocrsearch/infrastructure/sql_store.py

from datetime import datetime
from pathlib import Path
from typing import List

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    create_engine,
    func,
    select,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from ocrsearch.domain.errors import (
    DuplicateRecordError,
    InvalidInputError,
    StoreUnavailableError,
)
from ocrsearch.domain.interfaces import RecordStorePort
from ocrsearch.domain.models import Record


class Base(DeclarativeBase):
    pass


class RecordRow(Base):
    __tablename__ = "documents"
    __table_args__ = (
        CheckConstraint("length(text) > 0", name="ck_documents_text_not_empty"),
    )

    id:          Mapped[int]      = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Uniqueness here is the only duplicate detection in the system.
    filename:    Mapped[str]      = mapped_column(String(255), nullable=False, unique=True)
    text:        Mapped[str]      = mapped_column(Text, nullable=False)
    upload_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    confidence:  Mapped[float]    = mapped_column(Float, nullable=False)


class SqlRecordStore(RecordStorePort):
    """
    Record store backed by any SQLAlchemy database URL.

    Every operation opens and closes its own session; nothing is held
    between calls. A uniqueness violation on `filename` is reported as
    DuplicateRecordError, every other database failure as
    StoreUnavailableError.
    """

    def __init__(self, database_url: str, echo: bool = False):
        self._database_url = database_url
        self._echo         = echo
        self._engine       = None
        self._Session      = None

    def ensure_schema(self) -> None:
        """Create the documents table if it does not exist yet."""
        engine = self._get_engine()
        try:
            Base.metadata.create_all(engine)
        except SQLAlchemyError as error:
            raise StoreUnavailableError(f"Schema setup failed: {error}") from error
        print("[RecordStore] ✓ Schema ready.")

    def insert(self, record: Record) -> int:
        if record.id is not None:
            raise InvalidInputError(
                f"Record '{record.filename}' already has id {record.id}.", stage="storage"
            )
        if not record.text.strip():
            raise InvalidInputError(
                f"Refusing to store '{record.filename}' with empty text.", stage="storage"
            )

        row = RecordRow(
            filename    = record.filename,
            text        = record.text,
            upload_time = record.upload_time.replace(microsecond=0),
            confidence  = record.confidence,
        )
        try:
            with self._session() as session, session.begin():
                session.add(row)
                session.flush()
                record_id = row.id
        except IntegrityError as error:
            print(f"[RecordStore] ⚠ Duplicate document (Filename: {record.filename}). Skipping insert.")
            raise DuplicateRecordError(
                f"A document named '{record.filename}' is already stored."
            ) from error
        except SQLAlchemyError as error:
            print(f"[RecordStore] ✗ Insert error: {error}")
            raise StoreUnavailableError(
                f"Could not store '{record.filename}': {error}"
            ) from error

        print(f"[RecordStore] ✓ Insert successful. Document ID: {record_id}")
        return record_id

    def list_all(self) -> List[Record]:
        query = select(RecordRow).order_by(RecordRow.upload_time.desc(), RecordRow.id.desc())
        try:
            with self._session() as session:
                records = [_to_record(row) for row in session.scalars(query)]
        except SQLAlchemyError as error:
            print(f"[RecordStore] ✗ Fetch error: {error}")
            raise StoreUnavailableError(f"Could not list documents: {error}") from error

        print(f"[RecordStore] Fetched {len(records)} documents.")
        return records

    def count(self) -> int:
        try:
            with self._session() as session:
                return session.scalar(select(func.count()).select_from(RecordRow))
        except SQLAlchemyError as error:
            raise StoreUnavailableError(f"Could not count documents: {error}") from error

    # ─── Private ──────────────────────────────────────────────────────────────

    def _get_engine(self):
        """Create the engine on first use; a bad URL or missing driver is a store fault."""
        if self._engine is None:
            try:
                _ensure_sqlite_directory(self._database_url)
                self._engine = create_engine(self._database_url, echo=self._echo)
            except (SQLAlchemyError, ImportError, OSError) as error:
                raise StoreUnavailableError(
                    f"Cannot open database '{self._database_url}': {error}"
                ) from error
            self._Session = sessionmaker(bind=self._engine)
        return self._engine

    def _session(self):
        self._get_engine()
        return self._Session()


def _to_record(row: RecordRow) -> Record:
    return Record(
        id          = row.id,
        filename    = row.filename,
        text        = row.text,
        confidence  = row.confidence,
        upload_time = row.upload_time,
    )


def _ensure_sqlite_directory(database_url: str) -> None:
    """SQLite creates the file but not its parent directory."""
    try:
        url = make_url(database_url)
    except SQLAlchemyError:
        return
    if url.get_backend_name() != "sqlite":
        return
    database = url.database
    if database and database != ":memory:" and not database.startswith("file:"):
        Path(database).parent.mkdir(parents=True, exist_ok=True)
