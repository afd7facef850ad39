import uuid
from order_service.errors import ProductNotFound
from order_service.services.pricing import price_items, tax_for
from tests.base import OrderServiceTestCase


class TestTax(OrderServiceTestCase):
    def test_tax_is_floored_two_percent(self):
        self.assertEqual(tax_for(250), 5)
        self.assertEqual(tax_for(49), 0)
        self.assertEqual(tax_for(99), 1)
        self.assertEqual(tax_for(0), 0)


class TestPriceItems(OrderServiceTestCase):
    def test_amount_from_stored_prices(self):
        quote = price_items([(self.apple.product_id, 2), (self.bread.product_id, 1)])
        self.assertEqual(quote.subtotal, 250)
        self.assertEqual(quote.tax, 5)
        self.assertEqual(quote.amount, 255)

    def test_line_items_keep_request_order(self):
        quote = price_items([(self.bread.product_id, 3), (self.apple.product_id, 1)])
        self.assertEqual([li.product.name for li in quote.line_items], ["Bread", "Apple"])
        self.assertEqual([li.quantity for li in quote.line_items], [3, 1])

    def test_same_product_twice_counts_both_lines(self):
        quote = price_items([(self.apple.product_id, 1), (self.apple.product_id, 4)])
        self.assertEqual(quote.subtotal, 500)
        self.assertEqual(quote.amount, 510)

    def test_large_quantities_stay_exact(self):
        pricey = self.make_product("Piano", 123456789)
        quote = price_items([(pricey.product_id, 1000)])
        self.assertEqual(quote.subtotal, 123456789000)
        self.assertEqual(quote.amount, 123456789000 + 2469135780)

    def test_unknown_product_aborts(self):
        missing = uuid.uuid4()
        with self.assertRaises(ProductNotFound) as ctx:
            price_items([(self.apple.product_id, 1), (missing, 2)])
        self.assertEqual(ctx.exception.product_id, missing)
