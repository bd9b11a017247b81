"""Statement upload and processing service."""

import asyncio
import hashlib
import logging
import re
from pathlib import Path
from uuid import UUID

from ledgerlens.config import settings
from ledgerlens.db.sqlite import Database, db
from ledgerlens.models import (
    Account,
    AccountAssignment,
    AccountType,
    InstitutionCode,
    Statement,
    StatementStatus,
    UploadResponse,
)
from ledgerlens.parsers.validation import validate_file_contents
from ledgerlens.services.pipeline import StatementExtractionPipeline, pipeline

logger = logging.getLogger(__name__)

# Processing tasks still running, held until their done-callback fires
_background_tasks: set[asyncio.Task] = set()

# Card number printed as "Account Number: XXXX XXXX XXXX 1234" and similar
LAST4_FROM_TEXT = re.compile(
    r"(?:account|card)\s*(?:number|ending|#)[:\s]+(?:[Xx*]{4}[\s-]*){2,3}(\d{4})", re.IGNORECASE
)

INSTITUTION_DISPLAY_NAMES = {
    InstitutionCode.AMEX: "American Express Card",
    InstitutionCode.CHASE: "Chase Card",
    InstitutionCode.CITI: "Citi Card",
    InstitutionCode.WELLS_FARGO: "Wells Fargo Card",
    InstitutionCode.CAPITAL_ONE: "Capital One Card",
    InstitutionCode.DISCOVER: "Discover Card",
    InstitutionCode.BANK_OF_AMERICA: "Bank of America Card",
    InstitutionCode.GOLDMAN_SACHS: "Apple Card",
}


class StatementNotFoundError(LookupError):
    """Raised when a statement id does not exist."""

    pass


class AccountNotFoundError(LookupError):
    """Raised when an account id does not exist."""

    pass


def compute_file_hash(contents: bytes) -> str:
    """Compute SHA256 hash of file contents."""
    return hashlib.sha256(contents).hexdigest()


def account_display_name(institution: InstitutionCode, last4: str | None) -> str:
    """Display name such as "Chase Card", or "Chase ···1234" when the last four digits are known."""
    name = INSTITUTION_DISPLAY_NAMES.get(institution, f"{institution.value} Card")
    if last4:
        name = name.replace(" Card", f" ···{last4}")
    return name


class StatementService:
    """Owns the statement lifecycle: PENDING, PROCESSING, then COMPLETED or FAILED."""

    def __init__(
        self,
        database: Database | None = None,
        extraction: StatementExtractionPipeline | None = None,
        uploads_dir: Path | None = None,
    ):
        self.db = database or db
        self.pipeline = extraction or pipeline
        self.uploads_dir = uploads_dir or settings.uploads_path

    def get_statement(self, statement_id: UUID) -> Statement:
        statement = self.db.get_statement(statement_id)
        if statement is None:
            raise StatementNotFoundError(f"Statement not found: {statement_id}")
        return statement

    def create_statement(self, file_name: str, contents: bytes, account_id: UUID | None = None) -> UploadResponse:
        """
        Store an uploaded PDF and record it as a PENDING statement.

        Raises:
            ValidationError: If the file is empty or too small
            AccountNotFoundError: If account_id does not exist
        """
        validate_file_contents(contents)

        file_hash = compute_file_hash(contents)
        existing = self.db.get_statement_by_hash(file_hash)
        if existing is not None:
            return UploadResponse(
                statement_id=existing.id,
                file_name=file_name,
                status=existing.status,
                message="This file has already been uploaded",
            )

        if account_id is not None and self.db.get_account(account_id) is None:
            raise AccountNotFoundError(f"Account not found: {account_id}")

        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        file_path = self.uploads_dir / f"{file_hash}.pdf"
        file_path.write_bytes(contents)

        statement = Statement(
            account_id=account_id,
            file_name=file_name,
            file_path=str(file_path),
            file_hash=file_hash,
        )
        self.db.save_statement(statement)
        logger.info(f"Saved statement {statement.id} for {file_name}")

        return UploadResponse(
            statement_id=statement.id,
            file_name=file_name,
            status=statement.status,
            message=f"Processing {file_name} in background",
        )

    async def upload(self, file_name: str, contents: bytes, account_id: UUID | None = None) -> UploadResponse:
        """Store the statement and start processing it without waiting for the result."""
        response = self.create_statement(file_name, contents, account_id)
        if response.status == StatementStatus.PENDING:
            self.schedule_processing(response.statement_id)
        return response

    def schedule_processing(self, statement_id: UUID) -> asyncio.Task:
        """Run process() in a worker thread as a background task."""
        task = asyncio.create_task(asyncio.to_thread(self.process, statement_id))
        _background_tasks.add(task)

        def handle_task_error(task: asyncio.Task) -> None:
            _background_tasks.discard(task)
            if task.cancelled():
                logger.warning(f"Processing of statement {statement_id} was cancelled")
                return
            error = task.exception()
            if error is not None:
                logger.error(f"Background task error for statement {statement_id}: {error}")

        task.add_done_callback(handle_task_error)
        return task

    def process(self, statement_id: UUID) -> Statement:
        """
        Extract a stored statement and persist the result.

        Failures never propagate: the statement is marked FAILED with the
        error message and no transactions are written.
        """
        statement = self.get_statement(statement_id)
        statement.status = StatementStatus.PROCESSING
        self.db.save_statement(statement)

        try:
            contents = Path(statement.file_path).read_bytes()
            text = self.pipeline.text_extractor.extract(contents)

            account = self.db.get_account(statement.account_id) if statement.account_id else None
            if account is None:
                account = self._auto_link_account(text, statement)

            result = self.pipeline.run_text(text, statement, account)
            transactions = result.transactions

            if account is not None and statement.payment_due_date is not None:
                account.payment_due_day = statement.payment_due_date.day
                logger.info(f"Account {account.name}: payment due day set to {account.payment_due_day}")

            if transactions:
                dates = [txn.transaction_date for txn in transactions]
                statement.start_date = min(dates)
                statement.end_date = max(dates)
                statement.statement_month = statement.start_date.replace(day=1)

            statement.status = StatementStatus.COMPLETED
            self.db.save_extraction(statement, account, transactions)
            logger.info(f"Statement {statement_id} processing complete: {len(transactions)} transactions")

        except Exception as e:
            logger.exception(f"Failed to process statement {statement_id}: {e}")
            statement.status = StatementStatus.FAILED
            statement.error_message = str(e)
            self.db.update_statement_status(statement_id, StatementStatus.FAILED, str(e))

        return statement

    def _auto_link_account(self, text: str, statement: Statement) -> Account | None:
        """Find or create the account a statement belongs to. GENERIC documents get none."""
        institution = self.pipeline.classifier.classify(text)
        if institution == InstitutionCode.GENERIC:
            logger.info("Could not detect institution, statement will have no account")
            return None

        match = LAST4_FROM_TEXT.search(text)
        last4 = match.group(1) if match else None
        if last4:
            logger.info(f"Detected last4 = {last4} for institution {institution.value}")

        account = self.db.find_account(institution, last4)
        if account is None:
            account = Account(
                name=account_display_name(institution, last4),
                institution=institution,
                last4=last4,
                type=AccountType.CREDIT_CARD,
                is_active=True,
            )
            logger.info(f"Auto-created {institution.value} account '{account.name}' for statement")
        else:
            logger.info(f"Auto-linked statement to {institution.value} account {account.name}")

        statement.account_id = account.id
        return account

    def reset_for_reprocess(self, statement_id: UUID) -> Statement:
        """Delete derived transactions and clear extracted fields so processing starts clean."""
        statement = self.get_statement(statement_id)
        deleted = self.db.delete_transactions_for_statement(statement_id)
        if deleted:
            logger.info(f"Deleted {deleted} existing transactions before reprocessing statement {statement_id}")
        statement.reset_derived_fields()
        self.db.save_statement(statement)
        return statement

    def reprocess(self, statement_id: UUID) -> Statement:
        """Reset and process a statement again, synchronously."""
        self.reset_for_reprocess(statement_id)
        return self.process(statement_id)

    def assign_account(self, statement_id: UUID, account_id: UUID) -> AccountAssignment:
        """Link a statement to an account and back-fill its transactions."""
        self.get_statement(statement_id)
        account = self.db.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(f"Account not found: {account_id}")

        updated = self.db.assign_statement_account(statement_id, account_id)
        logger.info(f"Assigned account {account.name} to statement {statement_id} ({updated} transactions updated)")
        return AccountAssignment(statement_id=statement_id, account_id=account_id, transactions_updated=updated)

    def delete(self, statement_id: UUID) -> None:
        """Delete a statement, its transactions and the stored file."""
        statement = self.get_statement(statement_id)
        self.db.delete_statement(statement_id)
        if statement.file_path:
            Path(statement.file_path).unlink(missing_ok=True)
        logger.info(f"Deleted statement {statement_id}")


# Global service instance
statement_service = StatementService()
