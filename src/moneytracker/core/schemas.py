"""Payload schemas for the remote tables a mutation can target.

Every queued mutation carries one of a closed set of payload types, one per
table, so replay never has to guess at the shape of its data.

Constants:
    TABLE_PAYLOADS: Payload class keyed by Table
    REQUIRED_FIELDS: Fields required on insert, keyed by Table

Functions:
    payload_from_dict: Build a typed payload, validating against its table
    payload_to_dict: Serialize a payload, dropping unset fields
"""
from dataclasses import dataclass, fields
from enum import Enum
from typing import Union

from .errors import SchemaError


class Table(str, Enum):
    """Remote tables that accept offline mutations."""
    TRANSACTIONS = "transactions"
    BUDGETS = "budgets"
    RECURRING_TRANSACTIONS = "recurring_transactions"
    CUSTOM_CATEGORIES = "custom_categories"
    TRANSACTION_COMMENTS = "transaction_comments"


@dataclass(frozen=True)
class TransactionPayload:
    id: str | None = None
    user_id: str | None = None
    amount: float | None = None
    type: str | None = None  # income | expense
    category: str | None = None
    date: str | None = None
    description: str | None = None
    currency: str | None = None
    exchange_rate: float | None = None
    attachment_url: str | None = None


@dataclass(frozen=True)
class BudgetPayload:
    id: str | None = None
    user_id: str | None = None
    amount: float | None = None
    month: int | None = None
    year: int | None = None


@dataclass(frozen=True)
class RecurringTransactionPayload:
    id: str | None = None
    user_id: str | None = None
    amount: float | None = None
    type: str | None = None
    category: str | None = None
    frequency: str | None = None  # daily | weekly | monthly | yearly
    description: str | None = None
    is_active: bool | None = None
    last_processed: str | None = None


@dataclass(frozen=True)
class CustomCategoryPayload:
    id: str | None = None
    user_id: str | None = None
    name: str | None = None
    type: str | None = None  # income | expense
    icon: str | None = None
    color: str | None = None


@dataclass(frozen=True)
class TransactionCommentPayload:
    id: str | None = None
    user_id: str | None = None
    transaction_id: str | None = None
    comment: str | None = None


@dataclass(frozen=True)
class RecordRef:
    """Delete payload: only the id of the record to remove."""
    id: str


Payload = Union[
    TransactionPayload,
    BudgetPayload,
    RecurringTransactionPayload,
    CustomCategoryPayload,
    TransactionCommentPayload,
    RecordRef,
]


TABLE_PAYLOADS = {
    Table.TRANSACTIONS: TransactionPayload,
    Table.BUDGETS: BudgetPayload,
    Table.RECURRING_TRANSACTIONS: RecurringTransactionPayload,
    Table.CUSTOM_CATEGORIES: CustomCategoryPayload,
    Table.TRANSACTION_COMMENTS: TransactionCommentPayload,
}


REQUIRED_FIELDS = {
    Table.TRANSACTIONS: ("user_id", "amount", "type", "category"),
    Table.BUDGETS: ("user_id", "amount", "month", "year"),
    Table.RECURRING_TRANSACTIONS: ("user_id", "amount", "type", "category", "frequency"),
    Table.CUSTOM_CATEGORIES: ("user_id", "name", "type", "icon"),
    Table.TRANSACTION_COMMENTS: ("user_id", "transaction_id", "comment"),
}


def to_table(value: "Table | str") -> Table:
    """Coerce a table name to Table.

    Raises:
        SchemaError: If the name is not a known table
    """
    try:
        return Table(value)
    except ValueError:
        raise SchemaError(f"Unknown table: {value}") from None


def payload_from_dict(table: "Table | str", data: dict, partial: bool = False) -> Payload:
    """Build the typed payload for a table from a plain dict.

    Args:
        table: Target table
        data: Record fields
        partial: True for update payloads (required fields not enforced)

    Returns:
        Payload instance of the table's payload class

    Raises:
        SchemaError: Unknown table, unknown field, or missing required field
    """
    table = to_table(table)
    payload_cls = TABLE_PAYLOADS[table]
    known = {f.name for f in fields(payload_cls)}

    unknown = sorted(set(data) - known)
    if unknown:
        raise SchemaError(f"Unknown field(s) for {table.value}: {', '.join(unknown)}")

    if not partial:
        for name in REQUIRED_FIELDS[table]:
            if data.get(name) is None:
                raise SchemaError(f"Missing required field for {table.value}: {name}")

    return payload_cls(**data)


def payload_to_dict(payload: Payload) -> dict:
    """Serialize a payload to a dict, omitting fields that are None."""
    return {
        f.name: getattr(payload, f.name)
        for f in fields(payload)
        if getattr(payload, f.name) is not None
    }
