from decimal import Decimal

import pytest

from app.utils.decimal_utils import MAX_QUANTITY, convert_presentation, to_quantity


class TestToQuantity:
    def test_float_keeps_its_repr(self):
        assert to_quantity(0.1) == Decimal("0.100000")
        assert to_quantity(0.1) + to_quantity(0.2) == Decimal("0.3")

    def test_scales_to_six_places(self):
        assert str(to_quantity("2.5")) == "2.500000"
        assert str(to_quantity("-1.000001")) == "-1.000001"

    def test_accepts_ints_and_strings(self):
        assert to_quantity(12) == Decimal("12")
        assert to_quantity("3.5") == Decimal("3.5")

    @pytest.mark.parametrize("value", ["0.0000005", "2.0000004", "1.0000004"])
    def test_never_rounds(self, value):
        with pytest.raises(ValueError, match="6 decimal places"):
            to_quantity(value)

    def test_largest_storable_value(self):
        assert to_quantity("999999999999.999999") == MAX_QUANTITY
        assert to_quantity("-999999999999.999999") == -MAX_QUANTITY

    @pytest.mark.parametrize("value", ["1e25", "1000000000000", Decimal("-1E+13")])
    def test_rejects_more_than_twelve_integer_digits(self, value):
        with pytest.raises(ValueError, match="must not exceed"):
            to_quantity(value)

    def test_zero_with_large_exponent(self):
        assert to_quantity(Decimal("0E+30")) == Decimal("0")

    @pytest.mark.parametrize("value", [None, True, "abc", "NaN", "Infinity", Decimal("-Infinity")])
    def test_rejects_non_quantities(self, value):
        with pytest.raises(ValueError):
            to_quantity(value)


class TestConvertPresentation:
    def test_whole_boxes(self):
        assert convert_presentation(Decimal("2"), Decimal("12")) == Decimal("24")

    def test_rounds_once_after_multiplying(self):
        # 0.3333335 * 3 = 1.0000005 -> 1.000001
        assert convert_presentation(Decimal("0.3333335"), Decimal("3")) == Decimal("1.000001")

    def test_fractional_multiplier(self):
        assert convert_presentation("1.5", "0.25") == Decimal("0.375")

    def test_full_width_operands_multiply_exactly(self):
        # 36 significant digits in the raw product; only the final half-up step rounds
        product = convert_presentation(Decimal("999999.999999"), Decimal("999999.999999"))
        assert product == Decimal("999999999998.000000")

    def test_product_over_the_limit(self):
        with pytest.raises(ValueError, match="must not exceed"):
            convert_presentation(Decimal("999999999999"), Decimal("12"))

    def test_rounding_up_past_the_limit(self):
        with pytest.raises(ValueError, match="must not exceed"):
            convert_presentation(Decimal("999999999999.9999995"), Decimal("1"))
