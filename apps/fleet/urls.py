from django.urls import path
from . import views

urlpatterns = [
    path("vehicles/",                                views.VehicleListCreateView.as_view(),  name="vehicle-list"),
    path("vehicles/<uuid:vehicle_id>/",              views.VehicleDetailView.as_view(),      name="vehicle-detail"),
    path("vehicles/<uuid:vehicle_id>/status/",       views.VehicleStatusView.as_view(),      name="vehicle-status"),
    path("vehicles/<uuid:vehicle_id>/mileage/",      views.VehicleMileageView.as_view(),     name="vehicle-mileage"),
    path("vehicles/<uuid:vehicle_id>/maintenance/",  views.MaintenanceView.as_view(),        name="vehicle-maintenance"),
    path("vehicles/<uuid:vehicle_id>/maintenance/schedule/",
                                                     views.MaintenanceScheduleView.as_view(), name="vehicle-maintenance-schedule"),
    path("windows/",                                 views.WindowListCreateView.as_view(),   name="window-list"),
    path("windows/<uuid:window_id>/",                views.WindowDeleteView.as_view(),       name="window-delete"),
    path("availability/",                            views.AvailabilityQueryView.as_view(),  name="availability-query"),
    path("schedule/",                                views.ScheduleView.as_view(),           name="carrier-schedule"),
]
