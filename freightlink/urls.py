"""FreightLink root URL configuration."""

from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    path("admin/", admin.site.urls),

    # OpenAPI / Interactive Docs
    path("api/schema/",  SpectacularAPIView.as_view(),       name="schema"),
    path("api/docs/",    SpectacularSwaggerView.as_view(), name="swagger-ui"),

    # Auth
    path("api/auth/",    include("apps.accounts.urls")),

    # Core freight workflow
    path("api/orders/",  include("apps.orders.urls")),
    path("api/quotes/",  include("apps.quotes.urls")),
    path("api/fleet/",   include("apps.fleet.urls")),
    path("api/pricing/", include("apps.pricing.urls")),

    # Analytics
    path("api/analytics/", include("apps.analytics.urls")),

    # Ops
    path("api/health/",  include("apps.ops.urls")),
]
