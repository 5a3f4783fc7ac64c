from django.urls import path
from .views import MyStatsView, TopRoutesView, GoodsBreakdownView, MonthlySummaryView

urlpatterns = [
    path("me/",              MyStatsView.as_view(),        name="analytics-me"),
    path("routes/top/",      TopRoutesView.as_view(),      name="analytics-routes"),
    path("goods/breakdown/", GoodsBreakdownView.as_view(), name="analytics-goods"),
    path("monthly-summary/", MonthlySummaryView.as_view(), name="analytics-monthly"),
]
