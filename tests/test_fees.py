from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from apps.stocky.services.ledger.fees import FeeCalculator, q4, q6

D = Decimal

prices = st.decimals(min_value=D("0.0001"), max_value=D("100000"), places=4, allow_nan=False, allow_infinity=False)
quantities = st.decimals(min_value=D("0.000001"), max_value=D("100000"), places=6, allow_nan=False, allow_infinity=False)


def test_ten_units_at_fallback_price():
    fees = FeeCalculator().compute(D("1000.0000"), D("10"))

    assert fees.notional == D("10000.0000")
    assert fees.brokerage == D("50.0000")
    assert fees.stt == D("10.0000")
    assert fees.gst == D("9.0000")
    assert fees.total == D("10069.0000")
    assert fees.units == D("10.000000")


def test_amounts_serialize_with_fixed_places():
    d = FeeCalculator().compute(D("1234.5"), D("0.5")).to_dict()

    assert d["notional"] == "617.2500"
    assert d["brokerage"] == "3.0863"
    assert d["units"] == "0.500000"


def test_rounding_is_half_up():
    # notional 0.00005 rounds up, not to even
    fees = FeeCalculator().compute(D("0.0001"), D("0.5"))
    assert fees.notional == D("0.0001")


@pytest.mark.parametrize("price,units", [("0", "1"), ("-1", "1"), ("100", "0"), ("100", "-2")])
def test_non_positive_inputs_rejected(price, units):
    with pytest.raises(ValueError):
        FeeCalculator().compute(D(price), D(units))


def test_fee_percentages():
    assert FeeCalculator().fee_percentages() == {"brokeragePct": 0.005, "sttPct": 0.001, "gstPct": 0.18}


class TestFeeProperties:
    @given(prices, quantities)
    @settings(max_examples=200)
    def test_components_follow_fixed_rates(self, price, units):
        fees = FeeCalculator().compute(price, units)
        notional = price * units

        assert fees.notional == q4(notional)
        assert fees.brokerage == q4(notional * D("0.005"))
        assert fees.stt == q4(notional * D("0.001"))
        assert fees.gst == q4(notional * D("0.005") * D("0.18"))

    @given(prices, quantities)
    @settings(max_examples=200)
    def test_total_is_sum_of_components(self, price, units):
        fees = FeeCalculator().compute(price, units)
        notional = price * units
        brokerage = notional * D("0.005")
        expected = q4(notional + brokerage + notional * D("0.001") + brokerage * D("0.18"))

        assert fees.total == expected
        # rounding each leg separately can drift at most a few ten-thousandths
        assert abs(fees.total - (fees.notional + fees.brokerage + fees.stt + fees.gst)) <= D("0.0003")
        assert fees.units == q6(units)

    @given(prices, quantities)
    @settings(max_examples=100)
    def test_deterministic(self, price, units):
        assert FeeCalculator().compute(price, units) == FeeCalculator().compute(price, units)
