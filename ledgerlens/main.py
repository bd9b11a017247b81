"""FastAPI application for LedgerLens."""

import logging
from uuid import UUID

from fastapi import FastAPI, File, Form, HTTPException, UploadFile

from ledgerlens.config import settings
from ledgerlens.db.sqlite import db
from ledgerlens.models import Account, AccountAssignment, Statement, Transaction, UploadResponse
from ledgerlens.parsers.validation import ValidationError
from ledgerlens.services.statements import AccountNotFoundError, StatementNotFoundError, statement_service

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(
    title="LedgerLens",
    description="PDF credit card and bank statement extraction",
    version="0.1.0",
)


@app.on_event("startup")
async def startup():
    """Initialize on startup."""
    settings.ensure_directories()
    settings.log_config()


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "transaction_count": db.get_transaction_count()}


@app.post("/statements/upload", response_model=UploadResponse)
async def upload_statement(file: UploadFile = File(...), account_id: UUID | None = Form(None)):
    """Upload a PDF statement. Extraction runs in the background."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")
    if not file.filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")

    contents = await file.read()
    try:
        return await statement_service.upload(file.filename, contents, account_id)
    except (ValidationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AccountNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/statements", response_model=list[Statement])
async def get_statements(account_id: UUID | None = None):
    """List statements, newest first."""
    return db.get_statements(account_id=account_id)


@app.get("/statements/{statement_id}", response_model=Statement)
async def get_statement(statement_id: UUID):
    """Get one statement with its processing status."""
    try:
        return statement_service.get_statement(statement_id)
    except StatementNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/statements/{statement_id}/transactions", response_model=list[Transaction])
async def get_statement_transactions(statement_id: UUID):
    """Transactions extracted from a statement, in statement order."""
    try:
        statement_service.get_statement(statement_id)
    except StatementNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return db.get_transactions_for_statement(statement_id)


@app.post("/statements/{statement_id}/reprocess", response_model=Statement)
async def reprocess_statement(statement_id: UUID):
    """Delete a statement's transactions and extract it again in the background."""
    try:
        statement = statement_service.reset_for_reprocess(statement_id)
    except StatementNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    statement_service.schedule_processing(statement_id)
    return statement


@app.put("/statements/{statement_id}/account/{account_id}", response_model=AccountAssignment)
async def assign_statement_account(statement_id: UUID, account_id: UUID):
    """Link a statement and its transactions to an account."""
    try:
        return statement_service.assign_account(statement_id, account_id)
    except (StatementNotFoundError, AccountNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.delete("/statements/{statement_id}")
async def delete_statement(statement_id: UUID):
    """Delete a statement and its transactions."""
    try:
        statement_service.delete(statement_id)
    except StatementNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"deleted": str(statement_id)}


@app.get("/accounts", response_model=list[Account])
async def get_accounts():
    """List accounts with the metadata extracted from their statements."""
    return db.get_accounts()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ledgerlens.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.dev_mode,
    )
