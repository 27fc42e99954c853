"""
RentOps Django adapter URL routing.
"""

from django.urls import path

from adapters.django_api import views


urlpatterns = [
    path("orders", views.orders_create_view),
    path("orders/<str:order_id>", views.order_detail_view),
    path("orders/<str:order_id>/transition", views.order_transition_view),
    path("orders/<str:order_id>/submit", views.order_submit_view),
    path(
        "orders/<str:order_id>/return-to-logistics",
        views.order_return_to_logistics_view,
    ),
    path("orders/<str:order_id>/time-windows", views.order_time_windows_view),
    path("orders/<str:order_id>/job-number", views.order_job_number_view),
    path("orders/<str:order_id>/trucks/<str:leg>", views.order_truck_view),
    path("orders/<str:order_id>/invoice", views.order_invoice_view),
    path("orders/<str:order_id>/payment", views.order_payment_view),
    path("orders/<str:order_id>/line-items/catalog", views.order_catalog_item_view),
    path("orders/<str:order_id>/line-items/custom", views.order_custom_item_view),
    path(
        "orders/<str:order_id>/line-items/<str:line_item_id>/remove",
        views.order_remove_item_view,
    ),
    path(
        "orders/<str:order_id>/line-items/<str:line_item_id>/billing-mode",
        views.order_billing_mode_view,
    ),
    path("orders/<str:order_id>/line-item-requests", views.order_request_item_view),
    path(
        "orders/<str:order_id>/line-item-requests/<str:request_id>/approve",
        views.order_approve_request_view,
    ),
    path(
        "orders/<str:order_id>/line-item-requests/<str:request_id>/reject",
        views.order_reject_request_view,
    ),
    path(
        "orders/<str:order_id>/pricing/base-operations",
        views.order_base_operations_view,
    ),
    path("orders/<str:order_id>/pricing/transport", views.order_transport_view),
    path("orders/<str:order_id>/pricing/vehicle", views.order_vehicle_view),
    path("orders/<str:order_id>/pricing/margin", views.order_margin_view),
    path("orders/<str:order_id>/reskins", views.order_request_reskin_view),
    path(
        "orders/<str:order_id>/reskins/<str:reskin_id>/complete",
        views.order_complete_reskin_view,
    ),
    path(
        "orders/<str:order_id>/reskins/<str:reskin_id>/cancel",
        views.order_cancel_reskin_view,
    ),
]
