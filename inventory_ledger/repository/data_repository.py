"""Repository layer responsible for all database access."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from inventory_ledger.domain.models import (
    AllocationRecord,
    Channel,
    CompetitorAggregate,
    CompetitorSet,
    RevenueFact,
    RoomCategory,
)
from inventory_ledger.utils.config import Settings, get_settings
from inventory_ledger.utils.logger import get_logger


logger = get_logger(__name__)

ADMIN_IDENTITY_KEY = "admin_identity"


class DataRepository:
    """Encapsulates SQLite access so ledger rules stay storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        connection = sqlite3.connect(self._db_path, timeout=30.0)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        try:
            with connection:
                yield connection
        finally:
            connection.close()

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS RoomCategories (
                        property_id TEXT NOT NULL,
                        room_category_id TEXT NOT NULL,
                        name TEXT NOT NULL,
                        total_capacity INTEGER NOT NULL CHECK (total_capacity >= 0),
                        owner TEXT NOT NULL,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        PRIMARY KEY (property_id, room_category_id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Channels (
                        channel_id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        active INTEGER NOT NULL DEFAULT 1 CHECK (active IN (0,1)),
                        operator TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS InventoryAllocations (
                        property_id TEXT NOT NULL,
                        room_category_id TEXT NOT NULL,
                        channel_id TEXT NOT NULL,
                        date INTEGER NOT NULL CHECK (date >= 0),
                        allocated INTEGER NOT NULL CHECK (allocated >= 0),
                        booked INTEGER NOT NULL DEFAULT 0
                            CHECK (booked >= 0 AND booked <= allocated),
                        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        PRIMARY KEY (property_id, room_category_id, channel_id, date),
                        FOREIGN KEY (property_id, room_category_id)
                            REFERENCES RoomCategories(property_id, room_category_id),
                        FOREIGN KEY (channel_id) REFERENCES Channels(channel_id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS RevenueFacts (
                        property_id TEXT NOT NULL,
                        date INTEGER NOT NULL,
                        room_revenue INTEGER NOT NULL,
                        other_revenue INTEGER NOT NULL,
                        occupancy_percentage INTEGER NOT NULL
                            CHECK (occupancy_percentage BETWEEN 0 AND 100),
                        adr INTEGER NOT NULL,
                        revpar INTEGER NOT NULL,
                        recorded_by TEXT NOT NULL,
                        PRIMARY KEY (property_id, date)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS CompetitorSets (
                        set_id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        owner TEXT NOT NULL,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS CompetitorSetMembers (
                        set_id TEXT NOT NULL,
                        property_id TEXT NOT NULL,
                        is_member INTEGER NOT NULL CHECK (is_member IN (0,1)),
                        PRIMARY KEY (set_id, property_id),
                        FOREIGN KEY (set_id) REFERENCES CompetitorSets(set_id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS CompetitorAggregates (
                        set_id TEXT NOT NULL,
                        date INTEGER NOT NULL,
                        avg_occupancy INTEGER NOT NULL,
                        avg_adr INTEGER NOT NULL,
                        avg_revpar INTEGER NOT NULL,
                        property_count INTEGER NOT NULL,
                        PRIMARY KEY (set_id, date),
                        FOREIGN KEY (set_id) REFERENCES CompetitorSets(set_id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS LedgerState (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_allocations_category_date
                    ON InventoryAllocations(property_id, room_category_id, date);
                    """
                )
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    # --- Ledger state ---

    def get_state_value(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM LedgerState WHERE key = ?;",
                (key,),
            ).fetchone()
            return None if row is None else str(row["value"])

    def replace_state_value(self, key: str, expected: str, value: str) -> bool:
        """Swap a state value only while it still equals `expected`."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE LedgerState SET value = ? WHERE key = ? AND value = ?;",
                (value, key, expected),
            )
            return cursor.rowcount > 0

    def insert_state_value_if_absent(self, key: str, value: str) -> str:
        """Seed a state value once and return whatever is stored afterwards."""
        with self._connect() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO LedgerState (key, value) VALUES (?, ?);",
                (key, value),
            )
            row = conn.execute(
                "SELECT value FROM LedgerState WHERE key = ?;",
                (key,),
            ).fetchone()
            return str(row["value"])

    # --- Room categories ---

    def insert_room_category(self, category: RoomCategory) -> bool:
        """Insert a category; returns False when the key already exists."""
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO RoomCategories (
                        property_id, room_category_id, name, total_capacity, owner
                    )
                    VALUES (?, ?, ?, ?, ?);
                    """,
                    (
                        category.property_id,
                        category.room_category_id,
                        category.name,
                        category.total_capacity,
                        category.owner,
                    ),
                )
            return True
        except sqlite3.IntegrityError:
            return False

    def get_room_category(
        self,
        property_id: str,
        room_category_id: str,
    ) -> Optional[RoomCategory]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT property_id, room_category_id, name, total_capacity, owner
                FROM RoomCategories
                WHERE property_id = ? AND room_category_id = ?;
                """,
                (property_id, room_category_id),
            ).fetchone()
            if row is None:
                return None
            return self._to_room_category(row)

    def list_room_categories(self, property_id: str) -> List[RoomCategory]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT property_id, room_category_id, name, total_capacity, owner
                FROM RoomCategories
                WHERE property_id = ?
                ORDER BY room_category_id ASC;
                """,
                (property_id,),
            ).fetchall()
            return [self._to_room_category(row) for row in rows]

    @staticmethod
    def _to_room_category(row: sqlite3.Row) -> RoomCategory:
        return RoomCategory(
            property_id=str(row["property_id"]),
            room_category_id=str(row["room_category_id"]),
            name=str(row["name"]),
            total_capacity=int(row["total_capacity"]),
            owner=str(row["owner"]),
        )

    # --- Channels ---

    def insert_channel(self, channel: Channel) -> bool:
        """Insert a channel; returns False when the id already exists."""
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO Channels (channel_id, name, active, operator)
                    VALUES (?, ?, ?, ?);
                    """,
                    (
                        channel.channel_id,
                        channel.name,
                        int(channel.active),
                        channel.operator,
                    ),
                )
            return True
        except sqlite3.IntegrityError:
            return False

    def get_channel(self, channel_id: str) -> Optional[Channel]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT channel_id, name, active, operator FROM Channels WHERE channel_id = ?;",
                (channel_id,),
            ).fetchone()
            if row is None:
                return None
            return self._to_channel(row)

    def list_channels(self) -> List[Channel]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT channel_id, name, active, operator FROM Channels ORDER BY channel_id ASC;"
            ).fetchall()
            return [self._to_channel(row) for row in rows]

    def update_channel_active(self, channel_id: str, active: bool) -> bool:
        """Touch only the status flag; returns False when the channel is absent."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE Channels SET active = ? WHERE channel_id = ?;",
                (int(active), channel_id),
            )
            return cursor.rowcount > 0

    @staticmethod
    def _to_channel(row: sqlite3.Row) -> Channel:
        operator = row["operator"]
        return Channel(
            channel_id=str(row["channel_id"]),
            name=str(row["name"]),
            active=bool(row["active"]),
            operator=None if operator is None else str(operator),
        )

    # --- Allocations ---

    def get_allocation(
        self,
        property_id: str,
        room_category_id: str,
        channel_id: str,
        date: int,
    ) -> Optional[AllocationRecord]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT property_id, room_category_id, channel_id, date, allocated, booked
                FROM InventoryAllocations
                WHERE property_id = ?
                  AND room_category_id = ?
                  AND channel_id = ?
                  AND date = ?;
                """,
                (property_id, room_category_id, channel_id, date),
            ).fetchone()
            if row is None:
                return None
            return self._to_allocation(row)

    def list_allocations(
        self,
        property_id: str,
        room_category_id: str,
        date: int,
    ) -> List[AllocationRecord]:
        """Return every channel's record for one (property, category, date)."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT property_id, room_category_id, channel_id, date, allocated, booked
                FROM InventoryAllocations
                WHERE property_id = ? AND room_category_id = ? AND date = ?
                ORDER BY channel_id ASC;
                """,
                (property_id, room_category_id, date),
            ).fetchall()
            return [self._to_allocation(row) for row in rows]

    def set_allocation(
        self,
        property_id: str,
        room_category_id: str,
        channel_id: str,
        date: int,
        allocated: int,
        reset_booked: bool,
    ) -> AllocationRecord:
        """Write `allocated`, leaving `booked` alone unless a reset is requested."""
        booked_assignment = "booked = 0," if reset_booked else ""
        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT INTO InventoryAllocations (
                    property_id, room_category_id, channel_id, date, allocated, booked
                )
                VALUES (?, ?, ?, ?, ?, 0)
                ON CONFLICT(property_id, room_category_id, channel_id, date)
                DO UPDATE SET
                    allocated = excluded.allocated,
                    {booked_assignment}
                    updated_at = CURRENT_TIMESTAMP;
                """,
                (property_id, room_category_id, channel_id, date, allocated),
            )
            row = conn.execute(
                """
                SELECT property_id, room_category_id, channel_id, date, allocated, booked
                FROM InventoryAllocations
                WHERE property_id = ?
                  AND room_category_id = ?
                  AND channel_id = ?
                  AND date = ?;
                """,
                (property_id, room_category_id, channel_id, date),
            ).fetchone()
            return self._to_allocation(row)

    def increment_booked(
        self,
        property_id: str,
        room_category_id: str,
        channel_id: str,
        date: int,
        amount: int,
    ) -> bool:
        """Consume `amount` only if still available; returns False otherwise."""
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE InventoryAllocations
                SET booked = booked + ?, updated_at = CURRENT_TIMESTAMP
                WHERE property_id = ?
                  AND room_category_id = ?
                  AND channel_id = ?
                  AND date = ?
                  AND allocated - booked >= ?;
                """,
                (amount, property_id, room_category_id, channel_id, date, amount),
            )
            return cursor.rowcount > 0

    @staticmethod
    def _to_allocation(row: sqlite3.Row) -> AllocationRecord:
        return AllocationRecord(
            property_id=str(row["property_id"]),
            room_category_id=str(row["room_category_id"]),
            channel_id=str(row["channel_id"]),
            date=int(row["date"]),
            allocated=int(row["allocated"]),
            booked=int(row["booked"]),
        )

    # --- Revenue facts ---

    def upsert_revenue_fact(self, fact: RevenueFact, recorded_by: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO RevenueFacts (
                    property_id,
                    date,
                    room_revenue,
                    other_revenue,
                    occupancy_percentage,
                    adr,
                    revpar,
                    recorded_by
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(property_id, date) DO UPDATE SET
                    room_revenue = excluded.room_revenue,
                    other_revenue = excluded.other_revenue,
                    occupancy_percentage = excluded.occupancy_percentage,
                    adr = excluded.adr,
                    revpar = excluded.revpar,
                    recorded_by = excluded.recorded_by;
                """,
                (
                    fact.property_id,
                    fact.date,
                    fact.room_revenue,
                    fact.other_revenue,
                    fact.occupancy_percentage,
                    fact.adr,
                    fact.revpar,
                    recorded_by,
                ),
            )

    def get_revenue_fact(self, property_id: str, date: int) -> Optional[RevenueFact]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT property_id, date, room_revenue, other_revenue,
                       occupancy_percentage, adr, revpar
                FROM RevenueFacts
                WHERE property_id = ? AND date = ?;
                """,
                (property_id, date),
            ).fetchone()
            if row is None:
                return None
            return self._to_revenue_fact(row)

    def list_revenue_facts(
        self,
        property_id: str,
        start_date: int,
        end_date: int,
    ) -> List[RevenueFact]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT property_id, date, room_revenue, other_revenue,
                       occupancy_percentage, adr, revpar
                FROM RevenueFacts
                WHERE property_id = ? AND date BETWEEN ? AND ?
                ORDER BY date ASC;
                """,
                (property_id, start_date, end_date),
            ).fetchall()
            return [self._to_revenue_fact(row) for row in rows]

    @staticmethod
    def _to_revenue_fact(row: sqlite3.Row) -> RevenueFact:
        return RevenueFact(
            property_id=str(row["property_id"]),
            date=int(row["date"]),
            room_revenue=int(row["room_revenue"]),
            other_revenue=int(row["other_revenue"]),
            occupancy_percentage=int(row["occupancy_percentage"]),
            adr=int(row["adr"]),
            revpar=int(row["revpar"]),
        )

    # --- Competitor sets ---

    def insert_competitor_set(self, competitor_set: CompetitorSet) -> bool:
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO CompetitorSets (set_id, name, owner) VALUES (?, ?, ?);",
                    (competitor_set.set_id, competitor_set.name, competitor_set.owner),
                )
            return True
        except sqlite3.IntegrityError:
            return False

    def get_competitor_set(self, set_id: str) -> Optional[CompetitorSet]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT set_id, name, owner FROM CompetitorSets WHERE set_id = ?;",
                (set_id,),
            ).fetchone()
            if row is None:
                return None
            return CompetitorSet(
                set_id=str(row["set_id"]),
                name=str(row["name"]),
                owner=str(row["owner"]),
            )

    def set_membership(self, set_id: str, property_id: str, is_member: bool) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO CompetitorSetMembers (set_id, property_id, is_member)
                VALUES (?, ?, ?)
                ON CONFLICT(set_id, property_id) DO UPDATE SET is_member = excluded.is_member;
                """,
                (set_id, property_id, int(is_member)),
            )

    def get_membership(self, set_id: str, property_id: str) -> Optional[bool]:
        """Return the membership flag, or None when the pair was never recorded."""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT is_member FROM CompetitorSetMembers
                WHERE set_id = ? AND property_id = ?;
                """,
                (set_id, property_id),
            ).fetchone()
            if row is None:
                return None
            return bool(row["is_member"])

    def list_members(self, set_id: str) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT property_id FROM CompetitorSetMembers
                WHERE set_id = ? AND is_member = 1
                ORDER BY property_id ASC;
                """,
                (set_id,),
            ).fetchall()
            return [str(row["property_id"]) for row in rows]

    # --- Competitor aggregates ---

    def upsert_competitor_aggregate(self, aggregate: CompetitorAggregate) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO CompetitorAggregates (
                    set_id, date, avg_occupancy, avg_adr, avg_revpar, property_count
                )
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(set_id, date) DO UPDATE SET
                    avg_occupancy = excluded.avg_occupancy,
                    avg_adr = excluded.avg_adr,
                    avg_revpar = excluded.avg_revpar,
                    property_count = excluded.property_count;
                """,
                (
                    aggregate.set_id,
                    aggregate.date,
                    aggregate.avg_occupancy,
                    aggregate.avg_adr,
                    aggregate.avg_revpar,
                    aggregate.property_count,
                ),
            )

    def get_competitor_aggregate(
        self,
        set_id: str,
        date: int,
    ) -> Optional[CompetitorAggregate]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT set_id, date, avg_occupancy, avg_adr, avg_revpar, property_count
                FROM CompetitorAggregates
                WHERE set_id = ? AND date = ?;
                """,
                (set_id, date),
            ).fetchone()
            if row is None:
                return None
            return self._to_competitor_aggregate(row)

    def list_competitor_aggregates(
        self,
        set_id: str,
        start_date: int,
        end_date: int,
    ) -> List[CompetitorAggregate]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT set_id, date, avg_occupancy, avg_adr, avg_revpar, property_count
                FROM CompetitorAggregates
                WHERE set_id = ? AND date BETWEEN ? AND ?
                ORDER BY date ASC;
                """,
                (set_id, start_date, end_date),
            ).fetchall()
            return [self._to_competitor_aggregate(row) for row in rows]

    @staticmethod
    def _to_competitor_aggregate(row: sqlite3.Row) -> CompetitorAggregate:
        return CompetitorAggregate(
            set_id=str(row["set_id"]),
            date=int(row["date"]),
            avg_occupancy=int(row["avg_occupancy"]),
            avg_adr=int(row["avg_adr"]),
            avg_revpar=int(row["avg_revpar"]),
            property_count=int(row["property_count"]),
        )

    def count_allocations(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS count FROM InventoryAllocations;").fetchone()
            return int(row["count"])

    def count_channels(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS count FROM Channels;").fetchone()
            return int(row["count"])
