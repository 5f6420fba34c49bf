"""
Wave accounting client for invoice submission.

GraphQL over HTTPS with a bearer token. Every call is a POST to the public
endpoint; GraphQL-level errors and failed mutations surface as LedgerError
carrying the remote message list.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import requests

logger = logging.getLogger(__name__)

LEDGER_API_ENDPOINT = "https://gql.waveapps.com/graphql/public"


class LedgerError(Exception):
    """Raised when the ledger rejects a request."""

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = errors or []
        detail = f": {', '.join(self.errors)}" if self.errors else ""
        super().__init__(f"{message}{detail}")


class LedgerUnavailableError(LedgerError):
    """Raised when the ledger cannot be reached."""


@dataclass
class LedgerCustomer:
    id: str
    name: str


@dataclass
class LedgerProduct:
    id: str
    name: str


@dataclass
class LedgerInvoiceLine:
    """Resolved invoice line: product id plus quantity and unit price."""

    product_id: str
    quantity: Decimal
    unit_price: Decimal
    description: str = ""


@dataclass
class LedgerInvoice:
    id: str
    invoice_number: str
    view_url: str


_CUSTOMERS_QUERY = """
query Customers($businessId: ID!) {
  business(id: $businessId) {
    customers(page: 1, pageSize: 200) {
      edges { node { id name } }
    }
  }
}
"""

_PRODUCTS_QUERY = """
query Products($businessId: ID!) {
  business(id: $businessId) {
    products(page: 1, pageSize: 200) {
      edges { node { id name } }
    }
  }
}
"""

_INCOME_ACCOUNTS_QUERY = """
query IncomeAccounts($businessId: ID!) {
  business(id: $businessId) {
    accounts(types: [INCOME], page: 1, pageSize: 10) {
      edges { node { id name } }
    }
  }
}
"""

_BUSINESS_QUERY = """
query Business($businessId: ID!) {
  business(id: $businessId) { id name }
}
"""

_CREATE_PRODUCT_MUTATION = """
mutation CreateProduct($input: ProductCreateInput!) {
  productCreate(input: $input) {
    product { id name }
    didSucceed
    inputErrors { path message code }
  }
}
"""

_CREATE_INVOICE_MUTATION = """
mutation CreateInvoice($input: InvoiceCreateInput!) {
  invoiceCreate(input: $input) {
    invoice { id invoiceNumber viewUrl status }
    didSucceed
    inputErrors { path message }
  }
}
"""


def _format_money(value: Decimal) -> str:
    return f"{Decimal(value).quantize(Decimal('0.01'))}"


def _input_errors(payload: dict) -> list[str]:
    errors = []
    for err in payload.get("inputErrors") or []:
        path = err.get("path")
        if isinstance(path, list):
            path = ".".join(str(p) for p in path)
        errors.append(f"{path}: {err.get('message')}")
    return errors


class LedgerClient:
    """Customer, product and invoice operations against one Wave business."""

    def __init__(
        self,
        api_token: str,
        business_id: str,
        endpoint: str = LEDGER_API_ENDPOINT,
        timeout: int = 30,
    ):
        """
        Initialize with ledger credentials.

        Args:
            api_token: Bearer token for the Authorization header
            business_id: Wave business every call is scoped to
            endpoint: GraphQL endpoint URL
            timeout: Request timeout in seconds

        Raises:
            ValueError: If any credential is empty
        """
        if not api_token:
            raise ValueError("api_token is required")
        if not business_id:
            raise ValueError("business_id is required")

        self.api_token = api_token
        self.business_id = business_id
        self.endpoint = endpoint
        self.timeout = timeout

    def _request(self, query: str, variables: dict, timeout: int | None = None) -> dict:
        """
        Send a GraphQL request and return its data object.

        Raises:
            LedgerUnavailableError: On connection failure or timeout
            LedgerError: On HTTP error, invalid JSON or GraphQL errors
        """
        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }

        try:
            response = requests.post(
                self.endpoint,
                json={"query": query, "variables": variables},
                headers=headers,
                timeout=timeout or self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Ledger connection failed: {e}")
            raise LedgerUnavailableError(f"Connection failed: {e}")

        if response.status_code != 200:
            logger.error(f"Ledger returned HTTP {response.status_code}: {response.text[:500]}")
            raise LedgerError(f"Ledger request failed with status {response.status_code}")

        try:
            body = response.json()
        except json.JSONDecodeError:
            logger.error(f"Ledger returned invalid JSON: {response.text[:500]}")
            raise LedgerError("Invalid response from ledger")

        if body.get("errors"):
            messages = [err.get("message", str(err)) for err in body["errors"]]
            logger.error(f"Ledger GraphQL errors: {messages}")
            raise LedgerError("Ledger GraphQL errors", messages)

        data = body.get("data")
        if not isinstance(data, dict):
            raise LedgerError("Unexpected response format from ledger")
        return data

    def _business_nodes(self, query: str, connection: str) -> list[dict]:
        data = self._request(query, {"businessId": self.business_id})
        business = data.get("business") or {}
        edges = (business.get(connection) or {}).get("edges") or []
        return [edge["node"] for edge in edges if edge.get("node")]

    def find_customer_by_name(self, name: str) -> LedgerCustomer | None:
        """Case-insensitive exact name match. Returns None when absent."""
        wanted = name.lower()
        for node in self._business_nodes(_CUSTOMERS_QUERY, "customers"):
            if (node.get("name") or "").lower() == wanted:
                return LedgerCustomer(id=node["id"], name=node["name"])
        return None

    def list_products(self) -> list[LedgerProduct]:
        return [
            LedgerProduct(id=node["id"], name=node.get("name") or "")
            for node in self._business_nodes(_PRODUCTS_QUERY, "products")
        ]

    def find_default_income_account(self) -> str:
        """
        Pick the income account new products are booked against.

        Returns the first account whose name mentions sales or income,
        otherwise the first income account.

        Raises:
            LedgerError: If the business has no income accounts
        """
        accounts = self._business_nodes(_INCOME_ACCOUNTS_QUERY, "accounts")
        if not accounts:
            raise LedgerError("No income accounts found")

        for account in accounts:
            lowered = (account.get("name") or "").lower()
            if "sales" in lowered or "income" in lowered:
                return account["id"]
        return accounts[0]["id"]

    def create_product(self, name: str, income_account_id: str) -> LedgerProduct:
        """
        Create a product with a zero placeholder price.

        Raises:
            LedgerError: If the ledger rejects the product
        """
        variables = {
            "input": {
                "businessId": self.business_id,
                "name": name,
                "description": "",
                "unitPrice": "0.00",
                "incomeAccountId": income_account_id,
            }
        }
        payload = self._request(_CREATE_PRODUCT_MUTATION, variables).get("productCreate") or {}

        if not payload.get("didSucceed"):
            errors = _input_errors(payload)
            logger.error(f"Ledger product creation failed for {name}: {errors}")
            raise LedgerError("Product creation failed", errors)

        product = payload.get("product") or {}
        logger.info(f"Ledger product created: {name} ({product.get('id')})")
        return LedgerProduct(id=product["id"], name=product.get("name") or name)

    def create_invoice(
        self,
        customer_id: str,
        lines: list[LedgerInvoiceLine],
        po_number: str,
        invoice_date: date,
    ) -> LedgerInvoice:
        """
        Create an invoice for already-resolved product lines.

        Raises:
            LedgerError: If the ledger rejects the invoice
        """
        items = []
        for line in lines:
            item = {
                "productId": line.product_id,
                "quantity": str(line.quantity),
                "unitPrice": _format_money(line.unit_price),
            }
            if line.description:
                item["description"] = line.description
            items.append(item)

        variables = {
            "input": {
                "businessId": self.business_id,
                "customerId": customer_id,
                "poNumber": po_number,
                "items": items,
                "invoiceDate": invoice_date.isoformat(),
            }
        }
        payload = self._request(_CREATE_INVOICE_MUTATION, variables).get("invoiceCreate") or {}

        if not payload.get("didSucceed"):
            errors = _input_errors(payload)
            logger.error(f"Ledger invoice creation failed: {errors}")
            raise LedgerError("Invoice creation failed", errors)

        invoice = payload.get("invoice") or {}
        logger.info(f"Ledger invoice created: {invoice.get('invoiceNumber')} ({invoice.get('id')})")
        return LedgerInvoice(
            id=invoice["id"],
            invoice_number=invoice.get("invoiceNumber") or "",
            view_url=invoice.get("viewUrl") or "",
        )

    def check_connection(self, timeout: int = 5) -> None:
        """
        Connectivity probe: fetch the configured business.

        Raises:
            LedgerUnavailableError: If the ledger cannot be reached
            LedgerError: If the credentials or business id are rejected
        """
        data = self._request(_BUSINESS_QUERY, {"businessId": self.business_id}, timeout=timeout)
        if not data.get("business"):
            raise LedgerError(f"Business {self.business_id} not found")
