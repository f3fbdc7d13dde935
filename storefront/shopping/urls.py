from django.urls import path
from .views import (
    cart_detail, cart_add, cart_update, cart_remove, cart_count, cart_clear,
    wishlist_detail, wishlist_add, wishlist_remove, wishlist_check, wishlist_clear,
    stock_notification_list, stock_notification_add, stock_notification_remove,
    stock_notification_check, stock_notification_notify
)

urlpatterns = [
    # Cart endpoints
    path('cart/', cart_detail, name='cart-detail'),
    path('cart/add/', cart_add, name='cart-add'),
    path('cart/update/<int:item_id>/', cart_update, name='cart-update'),
    path('cart/remove/<int:item_id>/', cart_remove, name='cart-remove'),
    path('cart/count/', cart_count, name='cart-count'),
    path('cart/clear/', cart_clear, name='cart-clear'),

    # Wishlist endpoints
    path('wishlist/', wishlist_detail, name='wishlist-detail'),
    path('wishlist/add/<int:product_id>/', wishlist_add, name='wishlist-add'),
    path('wishlist/remove/<int:product_id>/', wishlist_remove, name='wishlist-remove'),
    path('wishlist/check/<int:product_id>/', wishlist_check, name='wishlist-check'),
    path('wishlist/clear/', wishlist_clear, name='wishlist-clear'),

    # Stock notification endpoints
    path('stock-notifications/', stock_notification_list, name='stock-notification-list'),
    path('stock-notifications/add/<int:product_id>/', stock_notification_add, name='stock-notification-add'),
    path('stock-notifications/remove/<int:product_id>/', stock_notification_remove, name='stock-notification-remove'),
    path('stock-notifications/check/<int:product_id>/', stock_notification_check, name='stock-notification-check'),
    path('stock-notifications/notify/<int:product_id>/', stock_notification_notify, name='stock-notification-notify'),
]
