"""
Base repository class for data access layer.

The repository pattern keeps query logic out of the matching code: the
matcher consumes plain pydantic snapshots, repositories translate between
those and SQLAlchemy rows.

Example:
    class OddsRepository(BaseRepository[Odds]):
        def find_for_game(self, game_id: int) -> List[Odds]:
            return self.query().filter(Odds.game_id == game_id).all()
"""
from typing import TypeVar, Generic, Type, Any, Dict, Sequence
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Query, Session

T = TypeVar("T")


class PersistenceError(RuntimeError):
    """A write to the database failed; the in-memory results are still valid."""


class SeasonNotFoundError(LookupError):
    """The requested season does not exist."""


class BaseRepository(Generic[T]):
    """
    Base repository providing common data access methods.

    Attributes:
        model_type: The SQLAlchemy model class this repository manages
        db: The database session
    """

    def __init__(self, model_type: Type[T], db: Session):
        self.model_type = model_type
        self.db = db

    def query(self) -> Query:
        """Get a new query object for this model."""
        return self.db.query(self.model_type)

    def upsert_rows(
        self,
        rows: Sequence[Dict[str, Any]],
        conflict_columns: Sequence[str],
        update_columns: Sequence[str]
    ) -> int:
        """
        INSERT ... ON CONFLICT (conflict_columns) DO UPDATE in one statement.

        Atomic per statement on PostgreSQL and SQLite, so concurrent sync runs
        writing the same key end up last-write-wins instead of duplicating.
        The caller commits.

        Returns:
            Number of rows written
        """
        if not rows:
            return 0

        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            insert = postgresql.insert
        elif dialect == "sqlite":
            insert = sqlite.insert
        else:
            raise NotImplementedError(f"Upsert is not supported for dialect '{dialect}'")

        stmt = insert(self.model_type.__table__).values(list(rows))
        stmt = stmt.on_conflict_do_update(
            index_elements=list(conflict_columns),
            set_={column: stmt.excluded[column] for column in update_columns},
        )
        self.db.execute(stmt)
        return len(rows)
