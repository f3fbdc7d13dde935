from django.urls import path
from .views import (
    order_list_create, guest_order_create, guest_order_track, user_orders, order_detail,
    order_status_update, order_payment_update, order_tracking_update, order_cancel,
    admin_order_list, admin_order_status
)

urlpatterns = [
    # Order endpoints
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/guest/', guest_order_create, name='guest-order-create'),
    path('orders/guest/<uuid:token>/', guest_order_track, name='guest-order-track'),
    path('orders/user/<int:user_id>/', user_orders, name='user-orders'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/status/', order_status_update, name='order-status-update'),
    path('orders/<int:pk>/payment/', order_payment_update, name='order-payment-update'),
    path('orders/<int:pk>/tracking/', order_tracking_update, name='order-tracking-update'),
    path('orders/<int:pk>/cancel/', order_cancel, name='order-cancel'),

    # Admin dashboard endpoints
    path('admin/orders/', admin_order_list, name='admin-order-list'),
    path('admin/orders/<int:pk>/status/', admin_order_status, name='admin-order-status'),
]
