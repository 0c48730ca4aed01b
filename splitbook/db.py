from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Tuple

import mysql.connector
from mysql.connector import pooling

from .config import config
from .models import ExpenseRecord, Member, SettlementRecord, SplitEntry
from .money import to_decimal


class Database:
    def __init__(self, settings=config) -> None:
        self.settings = settings
        self._pool = None

    @property
    def pool(self) -> pooling.MySQLConnectionPool:
        # Created on first use so importing the package never opens a socket.
        if self._pool is None:
            self._pool = pooling.MySQLConnectionPool(
                pool_name="splitbook_pool",
                pool_size=self.settings.DB_POOL_SIZE,
                host=self.settings.DB_HOST,
                port=self.settings.DB_PORT,
                user=self.settings.DB_USER,
                password=self.settings.DB_PASSWORD,
                database=self.settings.DB_NAME,
                auth_plugin="mysql_native_password",
            )
        return self._pool

    @contextmanager
    def connection(self):
        conn = self.pool.get_connection()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def cursor(self, dictionary: bool = True):
        with self.connection() as conn:
            cursor = conn.cursor(dictionary=dictionary)
            try:
                yield cursor
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                cursor.close()

    @contextmanager
    def snapshot(self):
        """Cursor whose reads all see the database at one point in time."""
        with self.connection() as conn:
            conn.start_transaction(
                consistent_snapshot=True,
                isolation_level="REPEATABLE READ",
                readonly=True,
            )
            cursor = conn.cursor(dictionary=True)
            try:
                yield cursor
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                cursor.close()

    def execute(self, query: str, params: Optional[Iterable[Any]] = None) -> int:
        with self.cursor() as cursor:
            cursor.execute(query, params or ())
            return cursor.lastrowid


GroupSnapshot = Tuple[List[Member], List[ExpenseRecord], List[SettlementRecord]]


class LedgerStore:
    """Reads group ledgers out of MySQL and appends settlements."""

    def __init__(self, database: Database) -> None:
        self.database = database

    def load_group(self, group_id: int) -> Optional[GroupSnapshot]:
        """Members, expenses and settlements of a group, or None if it does not exist."""
        with self.database.snapshot() as cursor:
            cursor.execute("SELECT id FROM `groups` WHERE id=%s", (group_id,))
            if cursor.fetchone() is None:
                return None

            cursor.execute(
                """
                SELECT u.id, u.name, u.avatar_url
                FROM group_members gm
                JOIN users u ON gm.user_id = u.id
                WHERE gm.group_id=%s
                ORDER BY u.id
                """,
                (group_id,),
            )
            member_rows = cursor.fetchall()

            cursor.execute(
                "SELECT id, amount, paid_by FROM expenses WHERE group_id=%s ORDER BY id",
                (group_id,),
            )
            expense_rows = cursor.fetchall()

            cursor.execute(
                """
                SELECT es.expense_id, es.user_id, es.share_amount
                FROM expense_shares es
                JOIN expenses e ON es.expense_id = e.id
                WHERE e.group_id=%s
                ORDER BY es.expense_id, es.user_id
                """,
                (group_id,),
            )
            share_rows = cursor.fetchall()

            cursor.execute(
                """
                SELECT from_user_id, to_user_id, amount, description
                FROM settlements
                WHERE group_id=%s
                ORDER BY id
                """,
                (group_id,),
            )
            settlement_rows = cursor.fetchall()

        members = [
            Member(member_id=row["id"], name=row["name"] or "Unknown", avatar_url=row.get("avatar_url"))
            for row in member_rows
        ]

        shares_map: Dict[int, List[SplitEntry]] = {}
        for share in share_rows:
            shares_map.setdefault(share["expense_id"], []).append(
                SplitEntry(member_id=share["user_id"], amount=to_decimal(share["share_amount"]))
            )

        expenses = [
            ExpenseRecord(
                expense_id=row["id"],
                paid_by=row["paid_by"],
                amount=to_decimal(row["amount"]),
                splits=tuple(shares_map.get(row["id"], [])),
            )
            for row in expense_rows
        ]

        settlements = [
            SettlementRecord(
                from_member_id=row["from_user_id"],
                to_member_id=row["to_user_id"],
                amount=to_decimal(row["amount"]),
                description=row.get("description"),
            )
            for row in settlement_rows
        ]

        return members, expenses, settlements

    def record_settlement(self, group_id: int, settlement: SettlementRecord) -> int:
        return self.database.execute(
            """
            INSERT INTO settlements (group_id, from_user_id, to_user_id, amount, description)
            VALUES (%s, %s, %s, %s, %s)
            """,
            (
                group_id,
                settlement.from_member_id,
                settlement.to_member_id,
                str(settlement.amount),
                settlement.description,
            ),
        )


db = Database()
store = LedgerStore(db)

StorageError = mysql.connector.Error
