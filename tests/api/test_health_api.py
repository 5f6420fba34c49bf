"""Tests for storage and ledger connectivity probes."""


class TestStorageHealth:
    def test_connected(self, client, storage):
        response = client.get("/api/health/storage")

        assert response.status_code == 200
        assert response.json()["data"] == {"service": "storage", "status": "connected"}
        storage.head_bucket.assert_called_once_with(timeout=5)

    def test_disconnected(self, client, storage):
        from clients.blob_storage_client import BlobStorageUnavailableError

        storage.head_bucket.side_effect = BlobStorageUnavailableError("timeout")

        response = client.get("/api/health/storage")

        assert response.status_code == 503
        body = response.json()
        assert body["error"]["code"] == "SERVICE_UNAVAILABLE"
        assert body["data"]["status"] == "disconnected"
        assert "timeout" in body["data"]["message"]


class TestLedgerHealth:
    def test_connected(self, client):
        response = client.get("/api/health/ledger")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "connected"

    def test_rejected_credentials(self, client, ledger):
        from clients.ledger_client import LedgerError

        ledger.check_connection.side_effect = LedgerError("Ledger GraphQL errors", ["Unauthorized"])

        response = client.get("/api/health/ledger")

        assert response.status_code == 503
        assert response.json()["data"]["service"] == "ledger"

    def test_not_configured(self, bare_client):
        response = bare_client.get("/api/health/ledger")

        assert response.status_code == 503
        assert response.json()["data"]["message"] == "ledger not configured"
