# purchases/api/urls.py

from django.urls import path

from purchases.api.views import (
    PayablesAgingView,
    PurchaseApproveView,
    PurchaseCancelView,
    PurchaseDetailView,
    PurchaseListCreateView,
    PurchaseOutstandingView,
    PurchasePaymentListCreateView,
    PurchaseReceiveView,
)

urlpatterns = [
    path("", PurchaseListCreateView.as_view(), name="purchases"),
    path("outstanding/", PurchaseOutstandingView.as_view(), name="purchases-outstanding"),
    path("aging/", PayablesAgingView.as_view(), name="purchases-aging"),
    path("<uuid:purchase_id>/", PurchaseDetailView.as_view(), name="purchase-detail"),
    path(
        "<uuid:purchase_id>/approve/",
        PurchaseApproveView.as_view(),
        name="purchase-approve",
    ),
    path(
        "<uuid:purchase_id>/receive/",
        PurchaseReceiveView.as_view(),
        name="purchase-receive",
    ),
    path(
        "<uuid:purchase_id>/cancel/",
        PurchaseCancelView.as_view(),
        name="purchase-cancel",
    ),
    path(
        "<uuid:purchase_id>/payments/",
        PurchasePaymentListCreateView.as_view(),
        name="purchase-payments",
    ),
]
