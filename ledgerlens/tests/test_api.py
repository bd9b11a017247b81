"""Tests for the HTTP API."""

from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from ledgerlens.db.sqlite import Database
from ledgerlens.main import app
from ledgerlens.models import Account, InstitutionCode
from ledgerlens.services.pipeline import StatementExtractionPipeline
from ledgerlens.services.statements import StatementService

CHASE_TEXT = (
    "CHASE FREEDOM UNLIMITED\n"
    "Account Number:  XXXX XXXX XXXX 7844\n"
    "Opening/Closing Date 01/16/26 - 02/15/26\n"
    "ACCOUNT ACTIVITY\n"
    "02/12     AUTOMATIC PAYMENT - THANK YOU -40.00\n"
)

PDF_BYTES = b"%PDF-1.4 chase statement"


@pytest.fixture
def service(tmp_path):
    database = Database(tmp_path / "api.db")
    text_extractor = MagicMock()
    text_extractor.extract.return_value = CHASE_TEXT
    service = StatementService(
        database, StatementExtractionPipeline(text_extractor=text_extractor), uploads_dir=tmp_path / "uploads"
    )
    service.schedule_processing = MagicMock()
    with patch("ledgerlens.main.db", database), patch("ledgerlens.main.statement_service", service):
        yield service


@pytest.fixture
def client(service):
    return TestClient(app)


def upload(client, name: str = "chase.pdf", contents: bytes = PDF_BYTES):
    return client.post("/statements/upload", files={"file": (name, contents, "application/pdf")})


class TestHealth:
    """Test the health endpoint."""

    def test_health(self, client):
        """Should report healthy with the transaction count."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "transaction_count": 0}


class TestUpload:
    """Test statement upload."""

    def test_upload_schedules_processing(self, client, service):
        """A new PDF is stored PENDING and processing is scheduled."""
        response = upload(client)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "PENDING"
        assert body["file_name"] == "chase.pdf"
        service.schedule_processing.assert_called_once()

    def test_duplicate_is_not_rescheduled(self, client, service):
        """Re-uploading a processed file does not start another run."""
        statement_id = upload(client).json()["statement_id"]
        service.process(service.get_statement(statement_id).id)
        service.schedule_processing.reset_mock()

        body = upload(client).json()

        assert body["statement_id"] == statement_id
        assert body["status"] == "COMPLETED"
        service.schedule_processing.assert_not_called()

    def test_rejects_non_pdf(self, client):
        """Only .pdf files are accepted."""
        response = upload(client, name="statement.csv")
        assert response.status_code == 400
        assert "PDF" in response.json()["detail"]

    def test_rejects_empty_file(self, client):
        """Empty uploads are a bad request."""
        assert upload(client, contents=b"").status_code == 400

    def test_unknown_account(self, client):
        """An unknown account id is a 404."""
        response = client.post(
            "/statements/upload",
            files={"file": ("chase.pdf", PDF_BYTES, "application/pdf")},
            data={"account_id": str(uuid4())},
        )
        assert response.status_code == 404


class TestStatements:
    """Test statement queries and actions."""

    def test_get_and_list(self, client):
        """Uploaded statements can be fetched and listed."""
        statement_id = upload(client).json()["statement_id"]

        assert client.get(f"/statements/{statement_id}").json()["id"] == statement_id
        assert [s["id"] for s in client.get("/statements").json()] == [statement_id]

    def test_missing_statement(self, client):
        """Unknown statements are 404 on every endpoint."""
        missing = uuid4()
        assert client.get(f"/statements/{missing}").status_code == 404
        assert client.get(f"/statements/{missing}/transactions").status_code == 404
        assert client.post(f"/statements/{missing}/reprocess").status_code == 404
        assert client.delete(f"/statements/{missing}").status_code == 404

    def test_transactions(self, client, service):
        """Should return the statement's transactions after processing."""
        statement_id = upload(client).json()["statement_id"]
        service.process(service.get_statement(statement_id).id)

        transactions = client.get(f"/statements/{statement_id}/transactions").json()

        assert len(transactions) == 1
        assert transactions[0]["type"] == "CREDIT"
        assert transactions[0]["transaction_date"] == "2026-02-12"

    def test_reprocess(self, client, service):
        """Reprocess clears transactions and schedules a new run."""
        statement_id = upload(client).json()["statement_id"]
        service.process(service.get_statement(statement_id).id)
        service.schedule_processing.reset_mock()

        response = client.post(f"/statements/{statement_id}/reprocess")

        assert response.status_code == 200
        assert response.json()["status"] == "PENDING"
        assert client.get(f"/statements/{statement_id}/transactions").json() == []
        service.schedule_processing.assert_called_once()

    def test_assign_account(self, client, service):
        """Should link the statement to an existing account."""
        statement_id = upload(client).json()["statement_id"]
        service.process(service.get_statement(statement_id).id)
        account = Account(name="Household", institution=InstitutionCode.CHASE)
        service.db.save_account(account)

        response = client.put(f"/statements/{statement_id}/account/{account.id}")

        assert response.status_code == 200
        assert response.json()["transactions_updated"] == 1
        assert client.put(f"/statements/{statement_id}/account/{uuid4()}").status_code == 404

    def test_delete(self, client):
        """Deleted statements are gone."""
        statement_id = upload(client).json()["statement_id"]

        assert client.delete(f"/statements/{statement_id}").json() == {"deleted": statement_id}
        assert client.get(f"/statements/{statement_id}").status_code == 404


class TestAccounts:
    """Test the accounts listing."""

    def test_lists_auto_created_account(self, client, service):
        """Processing a statement creates an account visible in the listing."""
        statement_id = upload(client).json()["statement_id"]
        service.process(service.get_statement(statement_id).id)

        accounts = client.get("/accounts").json()

        assert [(a["name"], a["last4"]) for a in accounts] == [("Chase ···7844", "7844")]
