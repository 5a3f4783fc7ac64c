from django.urls import path
from . import views

urlpatterns = [
    path("",                        views.OrderListCreateView.as_view(), name="order-list"),
    path("<uuid:order_id>/",          views.OrderDetailView.as_view(),     name="order-detail"),
    path("<uuid:order_id>/assign/",   views.OrderAssignView.as_view(),     name="order-assign"),
    path("<uuid:order_id>/start/",    views.OrderStartView.as_view(),      name="order-start"),
    path("<uuid:order_id>/complete/", views.OrderCompleteView.as_view(),   name="order-complete"),
    path("<uuid:order_id>/cancel/",   views.OrderCancelView.as_view(),     name="order-cancel"),
    path("<uuid:order_id>/price/",    views.OrderPriceView.as_view(),      name="order-price"),
    path("<uuid:order_id>/track/",    views.OrderTrackView.as_view(),      name="order-track"),
    path("<uuid:order_id>/position/", views.OrderPositionView.as_view(),   name="order-position"),
    path("<uuid:order_id>/delay/",    views.OrderDelayView.as_view(),      name="order-delay"),
]
