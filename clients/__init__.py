# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_valkey_url,
    get_processor_credentials,
)
from clients.valkey_client import ValkeyClient
from clients.yellow_client import YellowClient, InvoiceCreationError, compute_signature
