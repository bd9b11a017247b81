"""SQLite database operations for LedgerLens."""

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from uuid import UUID

from ledgerlens.config import settings
from ledgerlens.models import Account, InstitutionCode, Statement, StatementStatus, Transaction

# SQL schema. Money is stored as TEXT to keep Decimal precision.
SCHEMA = """
CREATE TABLE IF NOT EXISTS accounts (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    institution TEXT NOT NULL,
    type TEXT NOT NULL,
    last4 TEXT,
    credit_limit TEXT,
    current_balance TEXT,
    available_credit TEXT,
    apr TEXT,
    promo_apr TEXT,
    promo_apr_end_date TEXT,
    payment_due_day INTEGER,
    is_active INTEGER NOT NULL DEFAULT 1
);

CREATE INDEX IF NOT EXISTS idx_accounts_institution ON accounts(institution, last4);

CREATE TABLE IF NOT EXISTS statements (
    id TEXT PRIMARY KEY,
    account_id TEXT,
    file_name TEXT NOT NULL,
    file_path TEXT,
    file_hash TEXT,
    statement_month TEXT,
    start_date TEXT,
    end_date TEXT,
    opening_balance TEXT,
    closing_balance TEXT,
    minimum_payment TEXT,
    payment_due_date TEXT,
    ytd_total_fees TEXT,
    ytd_total_interest TEXT,
    ytd_year INTEGER,
    status TEXT NOT NULL,
    error_message TEXT,
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_statements_hash ON statements(file_hash);

CREATE TABLE IF NOT EXISTS transactions (
    id TEXT PRIMARY KEY,
    account_id TEXT,
    statement_id TEXT,
    transaction_date TEXT NOT NULL,
    post_date TEXT,
    description TEXT NOT NULL,
    merchant_name TEXT,
    category TEXT,
    amount TEXT NOT NULL,
    type TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_transactions_statement ON transactions(statement_id);
CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(transaction_date);
"""

ACCOUNT_COLUMNS = list(Account.model_fields)
STATEMENT_COLUMNS = list(Statement.model_fields)
TRANSACTION_COLUMNS = list(Transaction.model_fields)


def _to_db(value):
    """Convert a model field value to its SQLite representation."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or settings.db_path
        if db_path is None:
            settings.ensure_directories()
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the database schema."""
        with self._get_connection() as conn:
            conn.executescript(SCHEMA)
            conn.commit()

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @staticmethod
    def _upsert(conn: sqlite3.Connection, table: str, columns: list[str], model) -> None:
        placeholders = ", ".join("?" * len(columns))
        conn.execute(
            f"INSERT OR REPLACE INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
            [_to_db(getattr(model, column)) for column in columns],
        )

    # -- Accounts -----------------------------------------------------------

    def save_account(self, account: Account) -> None:
        """Insert or update an account."""
        with self._get_connection() as conn:
            self._upsert(conn, "accounts", ACCOUNT_COLUMNS, account)
            conn.commit()

    def get_account(self, account_id: UUID) -> Account | None:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM accounts WHERE id = ?", (str(account_id),)).fetchone()
            return Account.model_validate(dict(row)) if row else None

    def get_accounts(self) -> list[Account]:
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT * FROM accounts ORDER BY institution, name")
            return [Account.model_validate(dict(row)) for row in cursor.fetchall()]

    def find_account(self, institution: InstitutionCode, last4: str | None = None) -> Account | None:
        """
        Find an active account for an institution.

        With a last-four the match must be exact; without one the first
        account of the institution is returned.
        """
        query = "SELECT * FROM accounts WHERE institution = ? AND is_active = 1"
        params: list = [institution.value]
        if last4:
            query += " AND last4 = ?"
            params.append(last4)
        query += " ORDER BY rowid LIMIT 1"

        with self._get_connection() as conn:
            row = conn.execute(query, params).fetchone()
            return Account.model_validate(dict(row)) if row else None

    # -- Statements ---------------------------------------------------------

    def save_statement(self, statement: Statement) -> None:
        """Insert or update a statement."""
        with self._get_connection() as conn:
            self._upsert(conn, "statements", STATEMENT_COLUMNS, statement)
            conn.commit()

    def get_statement(self, statement_id: UUID) -> Statement | None:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM statements WHERE id = ?", (str(statement_id),)).fetchone()
            return Statement.model_validate(dict(row)) if row else None

    def get_statement_by_hash(self, file_hash: str) -> Statement | None:
        """Find a previously uploaded statement with the same file contents."""
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM statements WHERE file_hash = ?", (file_hash,)).fetchone()
            return Statement.model_validate(dict(row)) if row else None

    def get_statements(self, account_id: UUID | None = None) -> list[Statement]:
        query = "SELECT * FROM statements"
        params: list = []
        if account_id:
            query += " WHERE account_id = ?"
            params.append(str(account_id))
        query += " ORDER BY created_at DESC"

        with self._get_connection() as conn:
            cursor = conn.execute(query, params)
            return [Statement.model_validate(dict(row)) for row in cursor.fetchall()]

    def update_statement_status(
        self, statement_id: UUID, status: StatementStatus, error_message: str | None = None
    ) -> None:
        with self._get_connection() as conn:
            conn.execute(
                "UPDATE statements SET status = ?, error_message = ? WHERE id = ?",
                (status.value, error_message, str(statement_id)),
            )
            conn.commit()

    def delete_statement(self, statement_id: UUID) -> None:
        """Delete a statement and its transactions."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM transactions WHERE statement_id = ?", (str(statement_id),))
            conn.execute("DELETE FROM statements WHERE id = ?", (str(statement_id),))
            conn.commit()

    # -- Transactions -------------------------------------------------------

    def get_transactions_for_statement(self, statement_id: UUID) -> list[Transaction]:
        """Transactions of a statement in extraction order."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM transactions WHERE statement_id = ? ORDER BY rowid",
                (str(statement_id),),
            )
            return [Transaction.model_validate(dict(row)) for row in cursor.fetchall()]

    def delete_transactions_for_statement(self, statement_id: UUID) -> int:
        """Delete a statement's transactions. Returns the number deleted."""
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM transactions WHERE statement_id = ?", (str(statement_id),))
            conn.commit()
            return cursor.rowcount

    def assign_statement_account(self, statement_id: UUID, account_id: UUID) -> int:
        """Link a statement and its transactions to an account. Returns the transactions updated."""
        with self._get_connection() as conn:
            conn.execute(
                "UPDATE statements SET account_id = ? WHERE id = ?",
                (str(account_id), str(statement_id)),
            )
            cursor = conn.execute(
                "UPDATE transactions SET account_id = ? WHERE statement_id = ?",
                (str(account_id), str(statement_id)),
            )
            conn.commit()
            return cursor.rowcount

    def save_extraction(
        self, statement: Statement, account: Account | None, transactions: list[Transaction]
    ) -> None:
        """
        Persist the result of one extraction in a single transaction.

        Either the statement, account and every transaction are written, or
        nothing is.
        """
        with self._get_connection() as conn:
            try:
                if account is not None:
                    self._upsert(conn, "accounts", ACCOUNT_COLUMNS, account)
                for txn in transactions:
                    self._upsert(conn, "transactions", TRANSACTION_COLUMNS, txn)
                self._upsert(conn, "statements", STATEMENT_COLUMNS, statement)
                conn.commit()
            except sqlite3.Error:
                conn.rollback()
                raise

    def get_transaction_count(self) -> int:
        """Get total number of transactions."""
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT COUNT(*) as count FROM transactions")
            return cursor.fetchone()["count"]


# Global database instance
db = Database()
