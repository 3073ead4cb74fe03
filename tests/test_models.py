"""
Tests for canonical shipping records and the order document mapping.
"""
import pytest

from shiplink.models.order import OrderForShipment
from shiplink.models.shipping import (
    Address,
    Dimensions,
    DimensionUnit,
    Rate,
    ResidentialIndicator,
    ShippingMethod,
    ShippingStatus,
    Weight,
    WeightUnit,
)


class TestShippingStatus:

    @pytest.mark.parametrize("path", [
        ["pending", "processing", "shipped", "in_transit", "out_for_delivery", "delivered"],
        ["pending", "processing", "in_transit", "exception", "delivered"],
        ["pending", "processing", "shipped", "returned"],
        ["pending", "manual_review"],
    ])
    def test_legal_paths(self, path):
        status = ShippingStatus(path[0])
        for step in path[1:]:
            status = status.transition_to(step)
        assert status == ShippingStatus(path[-1])

    @pytest.mark.parametrize("status", list(ShippingStatus))
    def test_same_status_is_idempotent(self, status):
        assert status.can_transition_to(status)
        assert status.transition_to(status) == status

    def test_manual_review_has_no_automated_exit(self):
        for target in ShippingStatus:
            if target != ShippingStatus.MANUAL_REVIEW:
                assert not ShippingStatus.MANUAL_REVIEW.can_transition_to(target)

    def test_manual_review_only_from_pending(self):
        sources = [s for s in ShippingStatus if s.can_transition_to(ShippingStatus.MANUAL_REVIEW)]
        assert set(sources) == {ShippingStatus.PENDING, ShippingStatus.MANUAL_REVIEW}

    def test_reopen_returns_to_pending(self):
        assert ShippingStatus.MANUAL_REVIEW.reopen() == ShippingStatus.PENDING
        with pytest.raises(ValueError):
            ShippingStatus.PROCESSING.reopen()

    def test_cannot_skip_backwards(self):
        with pytest.raises(ValueError):
            ShippingStatus.DELIVERED.transition_to(ShippingStatus.IN_TRANSIT)
        assert ShippingStatus.DELIVERED.is_terminal


class TestValueRecords:

    def test_weight_normalizes_unit(self):
        assert Weight(1, "lbs").unit == WeightUnit.POUND
        assert Weight(500, "g").in_kilograms() == pytest.approx(0.5)

    @pytest.mark.parametrize("value", [0, -1])
    def test_weight_must_be_positive(self, value):
        with pytest.raises(ValueError):
            Weight(value, "kg")

    def test_dimensions_normalize(self):
        d = Dimensions(1, 2, 3, "ft")
        assert (d.length, d.width, d.height, d.unit) == (12.0, 24.0, 36.0, DimensionUnit.INCH)

    def test_address_missing_fields(self):
        address = Address(address_line1="1 Main", city=" ", country_code="CA")
        assert address.missing_required_fields() == ["city", "state_province", "postal_code"]
        assert not address.is_complete

    def test_residential_from_flag(self):
        assert ResidentialIndicator.from_flag(True) == ResidentialIndicator.YES
        assert ResidentialIndicator.from_flag(False) == ResidentialIndicator.NO
        assert ResidentialIndicator.from_flag(None) == ResidentialIndicator.UNKNOWN

    def test_rate_dict_round_trip_ignores_unknown_keys(self):
        rate = Rate(
            service_code="regular",
            service_name="Regular",
            carrier_id="se-1",
            carrier_code="canada_post",
            carrier_name=None,
            shipping_amount=9.99,
        )
        data = rate.to_dict()
        data["legacy_field"] = "x"
        assert Rate.from_dict(data) == rate


class TestOrderForShipment:

    def test_from_document(self, order_doc):
        order = OrderForShipment.from_document(order_doc)

        assert order.id == "order_123"
        assert order.shipping_method == ShippingMethod.SHIPPING
        assert order.shipping_address.full_name == "John Doe"
        assert order.selected_rate.service_code == "expedited"
        assert order.items[0].effective_weight.value == 1.5
        assert order.items[0].display_name == "Test Product 1"
        assert order.items[0].sku == "TEST-001"
        assert not order.has_shipment

    def test_explicit_order_id_wins(self, order_doc):
        assert OrderForShipment.from_document(order_doc, order_id="order_999").id == "order_999"
        order_doc["id"] = None
        assert OrderForShipment.from_document(order_doc, order_id="order_999").id == "order_999"
        assert OrderForShipment.from_document(order_doc).id == ""

    def test_weight_cascade_prefers_item_then_variant(self, order_doc):
        line = order_doc["items"][0]
        line["variant"] = {"title": "Blue", "sku": "TEST-001-B", "shippingDetails": {"weight": {"value": 2, "unit": "lb"}}}
        order = OrderForShipment.from_document(order_doc)
        assert order.items[0].effective_weight.unit == WeightUnit.POUND
        assert order.items[0].display_name == "Blue"
        assert order.items[0].sku == "TEST-001-B"

        line["weight"] = {"value": 100, "unit": "g"}
        order = OrderForShipment.from_document(order_doc)
        assert order.items[0].effective_weight.unit == WeightUnit.GRAM

    def test_unpopulated_references(self, order_doc):
        order_doc["items"] = [{"quantity": 1, "product": "prod_9"}]
        order = OrderForShipment.from_document(order_doc)

        assert order.items[0].product.id == "prod_9"
        assert order.items[0].display_name == "Unknown Product"
        assert order.items[0].effective_weight is None

    def test_existing_shipment_detected(self, order_doc):
        order_doc["shippingDetails"] = {"shipstationShipmentId": "se-1", "shippingStatus": "processing"}
        order = OrderForShipment.from_document(order_doc)

        assert order.has_shipment
        assert order.shipping_status == "processing"

    def test_unknown_shipping_method_rejected(self, order_doc):
        order_doc["shippingMethod"] = "drone"
        with pytest.raises(ValueError):
            OrderForShipment.from_document(order_doc)

    @pytest.mark.parametrize("fields,expected", [
        ({"shippingCost": 900}, 900),
        ({"shippingCost": 0}, 0),
        ({}, 1200),
        ({"selectedRate": None}, 1200),
        ({"selectedRate": None, "total": 15000, "amount": 15000}, None),
        ({"selectedRate": None, "total": None}, None),
    ])
    def test_derived_shipping_cost(self, order_doc, fields, expected):
        order_doc.update(fields)
        assert OrderForShipment.from_document(order_doc).derived_shipping_cost() == expected
