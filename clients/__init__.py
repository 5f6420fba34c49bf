# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_database_url,
    get_blob_storage_config,
    get_ledger_config,
)
from clients.postgres_client import PostgresClient
from clients.blob_storage_client import (
    BlobStorageClient,
    BlobStorageError,
    BlobStorageUnavailableError,
)
from clients.ledger_client import LedgerClient, LedgerError, LedgerUnavailableError
