"""
PATH: accounting/api/views/journal_entries.py

JOURNAL ENTRY API

- list/retrieve: filterable general journal (django-filter)
- create: draft (or posted with post=true)
- partial_update / destroy: drafts only
- post / void: state transitions

Security:
- reads require accounting.view_journalentry
- writes require accounting.add_journalentry / change_journalentry / delete_journalentry

All rules (balance, accounts, transitions) live in
accounting/services/journal_entry_service.py; this layer only maps
domain errors to HTTP.
"""

from __future__ import annotations

import django_filters
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.errors import service_error_response
from accounting.api.serializers.journal_entries import (
    JournalEntryCreateSerializer,
    JournalEntrySerializer,
    JournalEntryUpdateSerializer,
    VoidJournalEntrySerializer,
)
from accounting.models.journal import JournalEntry
from accounting.services import journal_entry_service
from accounting.services.exceptions import AccountingServiceError


class JournalEntryFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=JournalEntry.Status.choices)
    kind = django_filters.ChoiceFilter(field_name="transaction_kind", choices=JournalEntry.Kind.choices)
    date_from = django_filters.DateFilter(field_name="entry_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="entry_date", lookup_expr="lte")
    reference_type = django_filters.CharFilter(field_name="reference_type")
    number = django_filters.CharFilter(field_name="number", lookup_expr="icontains")

    class Meta:
        model = JournalEntry
        fields = ["status", "kind", "date_from", "date_to", "reference_type", "number"]


def _lines(validated) -> list[dict]:
    return [{k: v for k, v in dict(line).items() if v not in (None, "")} for line in validated]


def _require(request, perm: str, detail: str):
    if not request.user.has_perm(perm):
        raise PermissionDenied(detail)


@extend_schema(tags=["accounting"])
class JournalEntryViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    permission_classes = [IsAuthenticated]
    serializer_class = JournalEntrySerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = JournalEntryFilter

    queryset = JournalEntry.objects.prefetch_related("lines").order_by("-entry_date", "-number")

    def get_queryset(self):
        _require(
            self.request,
            "accounting.view_journalentry",
            "You do not have permission to view journal entries.",
        )
        return super().get_queryset()

    @extend_schema(
        request=JournalEntryCreateSerializer,
        responses={
            201: JournalEntrySerializer,
            400: OpenApiResponse(description="Unbalanced, zero-amount or invalid lines"),
            409: OpenApiResponse(description="Duplicate entry number"),
        },
    )
    def create(self, request, *args, **kwargs):
        _require(request, "accounting.add_journalentry", "You do not have permission to create journal entries.")

        s = JournalEntryCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)

        try:
            entry = journal_entry_service.create_journal_entry(
                entry_date=data.get("entry_date"),
                description=data["description"],
                lines=_lines(data["lines"]),
                transaction_kind=data["transaction_kind"],
                number=(data.get("number") or "").strip() or None,
                post=data["post"],
                reference_type=data["reference_type"],
                reference_id=data["reference_id"],
                reference_number=data["reference_number"],
                created_by=request.user,
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(
            JournalEntrySerializer(journal_entry_service.get_journal_entry(entry.pk)).data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=JournalEntryUpdateSerializer, responses={200: JournalEntrySerializer})
    def partial_update(self, request, *args, **kwargs):
        _require(request, "accounting.change_journalentry", "You do not have permission to change journal entries.")

        entry = self.get_object()
        s = JournalEntryUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)

        try:
            entry = journal_entry_service.update_journal_entry(
                entry.pk,
                lines=_lines(data["lines"]),
                description=data.get("description"),
                entry_date=data.get("entry_date"),
                transaction_kind=data.get("transaction_kind"),
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(JournalEntrySerializer(journal_entry_service.get_journal_entry(entry.pk)).data)

    def destroy(self, request, *args, **kwargs):
        _require(request, "accounting.delete_journalentry", "You do not have permission to delete journal entries.")

        entry = self.get_object()
        try:
            journal_entry_service.delete_journal_entry(entry.pk)
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=None, responses={200: JournalEntrySerializer})
    @action(detail=True, methods=["post"], url_path="post")
    def post_entry(self, request, pk=None):
        _require(request, "accounting.change_journalentry", "You do not have permission to post journal entries.")

        entry = self.get_object()
        try:
            entry = journal_entry_service.post_journal_entry(entry.pk)
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(JournalEntrySerializer(journal_entry_service.get_journal_entry(entry.pk)).data)

    @extend_schema(request=VoidJournalEntrySerializer, responses={200: JournalEntrySerializer})
    @action(detail=True, methods=["post"], url_path="void")
    def void(self, request, pk=None):
        _require(request, "accounting.change_journalentry", "You do not have permission to void journal entries.")

        entry = self.get_object()
        s = VoidJournalEntrySerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            entry = journal_entry_service.void_journal_entry(entry.pk, reason=s.validated_data["reason"])
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(JournalEntrySerializer(journal_entry_service.get_journal_entry(entry.pk)).data)
