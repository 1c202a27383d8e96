# accounting/api/serializers/__init__.py

from accounting.api.serializers.accounts import AccountCreateSerializer, AccountListSerializer
from accounting.api.serializers.documents import (
    CancelInputSerializer,
    DocumentLineInputSerializer,
    PaymentInputSerializer,
)
from accounting.api.serializers.journal_entries import (
    JournalEntryCreateSerializer,
    JournalEntrySerializer,
    JournalEntryUpdateSerializer,
    JournalLineSerializer,
    VoidJournalEntrySerializer,
)

__all__ = [
    "AccountListSerializer",
    "AccountCreateSerializer",
    "CancelInputSerializer",
    "DocumentLineInputSerializer",
    "PaymentInputSerializer",
    "JournalEntrySerializer",
    "JournalLineSerializer",
    "JournalEntryCreateSerializer",
    "JournalEntryUpdateSerializer",
    "VoidJournalEntrySerializer",
]
