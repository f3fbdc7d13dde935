"""Resolve the owner of cart, wishlist and notification rows for a request"""
from .models import CartItem


def shopper_lookup(request, create_session=False):
    """
    Filter kwargs selecting the current shopper's rows.

    Signed-in users own rows through `user`; anonymous visitors through their
    session key. Returns None for an anonymous visitor without a session
    unless `create_session` is set.
    """
    if request.user.is_authenticated:
        return {'user': request.user}

    session = request.session
    if not session.session_key:
        if not create_session:
            return None
        session.create()
    return {'session_key': session.session_key}


def clear_cart(request):
    """Empty the shopper's cart after checkout"""
    lookup = shopper_lookup(request)
    if lookup is None:
        return 0
    deleted, _ = CartItem.objects.filter(**lookup).delete()
    return deleted
