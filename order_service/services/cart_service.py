from order_service.extensions import db
from order_service.models.user import User
from order_service.services.order_service import to_uuid


def clear_cart(user_id):
    """Empty the user's cart. Returns False when the user does not exist."""
    uid = to_uuid(user_id)
    if uid is None:
        return False
    result = db.session.execute(
        db.update(User).where(User.user_id == uid).values(cart_items={})
    )
    db.session.commit()
    return bool(result.rowcount)
