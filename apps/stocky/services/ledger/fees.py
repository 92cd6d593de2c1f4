"""
Fee Calculator (Canonical)
==========================

Purpose:
- Deterministic fee breakdown for a stock reward: price x units -> notional,
  brokerage, STT, GST and total cost.

Design notes:
- Pure business logic: no DB, no HTTP.
- Decimal throughout. Amounts are quantized to 4 places and units to 6,
  half-up, so every deployment produces the same ledger amounts.
- The total is summed from the unrounded components, then quantized.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict


D = Decimal

BROKERAGE_RATE = D("0.005")
STT_RATE = D("0.001")
GST_RATE = D("0.18")  # applied to brokerage, not notional


def q4(x: Decimal) -> Decimal:
    """Quantize to 4 decimals for money."""
    return x.quantize(D("0.0001"), rounding=ROUND_HALF_UP)


def q6(x: Decimal) -> Decimal:
    """Quantize to 6 decimals for unit quantities."""
    return x.quantize(D("0.000001"), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FeeBreakdown:
    price: Decimal
    units: Decimal
    notional: Decimal
    brokerage: Decimal
    stt: Decimal
    gst: Decimal
    total: Decimal

    def to_dict(self) -> Dict[str, str]:
        """Serialize as strings to avoid float issues in JSON layers."""
        return {k: str(v) for k, v in asdict(self).items()}


class FeeCalculator:
    """
    Usage:
        fees = FeeCalculator().compute(D("1000.0000"), D("10"))
    """

    def __init__(
        self,
        *,
        brokerage_rate: Decimal = BROKERAGE_RATE,
        stt_rate: Decimal = STT_RATE,
        gst_rate: Decimal = GST_RATE,
    ) -> None:
        self.brokerage_rate = D(brokerage_rate)
        self.stt_rate = D(stt_rate)
        self.gst_rate = D(gst_rate)

    def compute(self, price: Decimal, units: Decimal) -> FeeBreakdown:
        price = D(price)
        units = D(units)
        if price <= 0:
            raise ValueError("price must be > 0")
        if units <= 0:
            raise ValueError("units must be > 0")

        notional = price * units
        brokerage = notional * self.brokerage_rate
        stt = notional * self.stt_rate
        gst = brokerage * self.gst_rate
        total = notional + brokerage + stt + gst

        return FeeBreakdown(
            price=q4(price),
            units=q6(units),
            notional=q4(notional),
            brokerage=q4(brokerage),
            stt=q4(stt),
            gst=q4(gst),
            total=q4(total),
        )

    def fee_percentages(self) -> Dict[str, Any]:
        return {
            "brokeragePct": float(self.brokerage_rate),
            "sttPct": float(self.stt_rate),
            "gstPct": float(self.gst_rate),
        }
