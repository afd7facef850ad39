"""
Error taxonomy for the order service.
Route handlers translate these into {success: false, message} responses;
the webhook route translates them into plain-text status codes.
"""


class OrderServiceError(Exception):
    status_code = 500

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class ValidationError(OrderServiceError):
    status_code = 400


class ProductNotFound(OrderServiceError):
    status_code = 500

    def __init__(self, product_id):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class OrderNotFound(OrderServiceError):
    status_code = 404

    def __init__(self, order_id):
        super().__init__(f"Order not found: {order_id}")
        self.order_id = order_id


class ProviderCallFailed(OrderServiceError):
    pass


class CheckoutSessionFailed(ProviderCallFailed):
    pass


class SignatureInvalid(OrderServiceError):
    status_code = 400
