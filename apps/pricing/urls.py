from django.urls import path
from .views import EstimateView, MarketAnalysisView, PricingRuleListCreateView

urlpatterns = [
    path("estimate/", EstimateView.as_view(),              name="pricing-estimate"),
    path("market/",   MarketAnalysisView.as_view(),        name="pricing-market"),
    path("rules/",    PricingRuleListCreateView.as_view(), name="pricing-rules"),
]
