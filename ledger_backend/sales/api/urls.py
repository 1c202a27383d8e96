# sales/api/urls.py

"""
SALES API URLS (CANONICAL)

Provides:
- Staff endpoints:
    /api/sales/sales/          (canonical list/create)
    /api/sales/sales/<uuid>/   (canonical retrieve/update/delete)

- Short alias (same viewset):
    /api/sales/                      (list/create)
    /api/sales/<uuid>/approve/       POST
    /api/sales/<uuid>/complete/      POST
    /api/sales/<uuid>/cancel/        POST
    /api/sales/<uuid>/payments/      GET | POST
    /api/sales/outstanding/          GET
    /api/sales/aging/?as_of=YYYY-MM-DD
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from sales.api.viewsets.sale import SaleViewSet

router = SimpleRouter()

router.register(r"sales", SaleViewSet, basename="sales")
router.register(r"", SaleViewSet, basename="sales-root")

urlpatterns = [
    path("", include(router.urls)),
]
