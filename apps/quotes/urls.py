from django.urls import path
from . import views

urlpatterns = [
    path("",                          views.QuoteCreateView.as_view(),   name="quote-create"),
    path("price/",                    views.QuotePriceView.as_view(),    name="quote-price"),
    path("auto/",                     views.AutoQuoteView.as_view(),     name="quote-auto"),
    path("mine/",                     views.CarrierQuoteListView.as_view(), name="quote-mine"),
    path("order/<uuid:order_id>/",    views.OrderQuoteListView.as_view(), name="quote-order-list"),
    path("<uuid:quote_id>/",          views.QuoteDetailView.as_view(),   name="quote-detail"),
    path("<uuid:quote_id>/send/",     views.QuoteSendView.as_view(),     name="quote-send"),
    path("<uuid:quote_id>/accept/",   views.QuoteAcceptView.as_view(),   name="quote-accept"),
    path("<uuid:quote_id>/reject/",   views.QuoteRejectView.as_view(),   name="quote-reject"),
]
