"""
PricingEngine: deterministic freight price breakdown.

price() is pure: it reads only its arguments and the rate tables below.
Each component is rounded half-up to a whole currency unit once, at the end
of its own computation; subtotal, taxes and total are derived from the
rounded components so the breakdown always re-adds exactly.
"""

from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone

from apps.core.choices import VehicleType, GoodsType, Priority, VEHICLE_CAPACITIES

VAT_RATE = Decimal("0.18")

BASE_PRICE    = Decimal("25000")
PRICE_PER_KM  = Decimal("150")
PRICE_PER_TON = Decimal("5000")
FUEL_SURCHARGE_RATE = Decimal("0.10")

VEHICLE_BASE_PRICES = {
    VehicleType.VAN:          Decimal("20000"),
    VehicleType.T3:           Decimal("25000"),
    VehicleType.T5:           Decimal("35000"),
    VehicleType.T10:          Decimal("45000"),
    VehicleType.T20:          Decimal("65000"),
    VehicleType.T35:          Decimal("85000"),
    VehicleType.TRAILER:      Decimal("95000"),
    VehicleType.SEMI_TRAILER: Decimal("100000"),
    VehicleType.DUMP:         Decimal("40000"),
    VehicleType.TANKER:       Decimal("55000"),
}

GOODS_MULTIPLIERS = {
    GoodsType.HAZMAT:       Decimal("1.8"),
    GoodsType.CHEMICAL:     Decimal("1.6"),
    GoodsType.LIVESTOCK:    Decimal("1.5"),
    GoodsType.LIQUID:       Decimal("1.4"),
    GoodsType.VEHICLES:     Decimal("1.3"),
    GoodsType.EQUIPMENT:    Decimal("1.25"),
    GoodsType.FOOD:         Decimal("1.2"),
    GoodsType.FURNITURE:    Decimal("1.15"),
    GoodsType.CONSTRUCTION: Decimal("1.1"),
    GoodsType.TEXTILES:     Decimal("1.05"),
}

HEAVY_VEHICLE_MULTIPLIERS = {
    VehicleType.T35:          Decimal("1.3"),
    VehicleType.TRAILER:      Decimal("1.4"),
    VehicleType.SEMI_TRAILER: Decimal("1.5"),
}

REQUIREMENT_FEES = {
    "FRAGILE":           Decimal("5000"),
    "REFRIGERATED":      Decimal("15000"),
    "URGENT":            Decimal("10000"),
    "SECURE":            Decimal("8000"),
    "DELICATE_HANDLING": Decimal("7000"),
    "LOADING_UNLOADING": Decimal("5000"),
    "SPECIAL_PACKAGING": Decimal("6000"),
}

GOODS_HANDLING_FEES = {
    GoodsType.HAZMAT:    Decimal("20000"),
    GoodsType.CHEMICAL:  Decimal("15000"),
    GoodsType.LIVESTOCK: Decimal("12000"),
    GoodsType.VEHICLES:  Decimal("10000"),
    GoodsType.LIQUID:    Decimal("8000"),
}

# order-creation estimate uses a flatter goods table
ESTIMATE_GOODS_MULTIPLIERS = {
    GoodsType.HAZMAT:    Decimal("1.5"),
    GoodsType.CHEMICAL:  Decimal("1.4"),
    GoodsType.LIQUID:    Decimal("1.3"),
    GoodsType.LIVESTOCK: Decimal("1.3"),
    GoodsType.VEHICLES:  Decimal("1.2"),
}

TOLL_RATE_PER_KM   = Decimal("25")
INSURANCE_RATE     = Decimal("0.005")
INSURANCE_MINIMUM  = Decimal("2000")
URGENT_FEE         = Decimal("15000")
WEEKEND_FEE        = Decimal("8000")

BREAKDOWN_COMPONENTS = (
    "base_price", "distance_price", "weight_price", "volume_price",
    "fuel_surcharge", "toll_fees", "handling_fees", "insurance_fees", "other_fees",
)


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_amount(value: Decimal) -> Decimal:
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def _is_weekend(when) -> bool:
    if when is None:
        return False
    if hasattr(when, "hour") and timezone.is_aware(when):
        when = timezone.localtime(when)
    return when.weekday() >= 5


class PricingEngine:
    """
    Freight price calculator.

    ``order`` is anything exposing weight_kg, volume_m3, goods_type,
    declared_value, estimated_distance_km, special_requirements, priority
    and departure_date (an Order instance, or a lightweight stand-in for
    estimates). ``rule`` is an optional PricingRule whose non-null rates
    override the defaults.
    """

    def price(self, order, vehicle_type: str, rule=None) -> dict:
        distance = to_decimal(order.estimated_distance_km)
        tons     = to_decimal(order.weight_kg) / 1000
        goods    = order.goods_type

        base     = self._base(vehicle_type, goods, rule)
        by_km    = self._distance(distance, vehicle_type, rule)
        by_ton   = self._weight(tons, rule)
        volume   = self._volume(to_decimal(order.volume_m3), vehicle_type) if order.volume_m3 else Decimal("0")
        fuel     = (base + by_km + by_ton) * FUEL_SURCHARGE_RATE
        tolls    = self._tolls(distance)
        handling = self._handling(order.special_requirements or [], goods)
        insurance = self._insurance(order.declared_value)
        other    = self._other(order.priority == Priority.URGENT, order.departure_date)

        breakdown = dict(zip(BREAKDOWN_COMPONENTS, (
            round_amount(base), round_amount(by_km), round_amount(by_ton), round_amount(volume),
            round_amount(fuel), round_amount(tolls), round_amount(handling),
            round_amount(insurance), round_amount(other),
        )))
        breakdown.update(self.totals(breakdown))
        return breakdown

    def totals(self, components: dict) -> dict:
        subtotal = sum((to_decimal(components[k]) for k in BREAKDOWN_COMPONENTS), Decimal("0"))
        taxes = round_amount(subtotal * VAT_RATE)
        return {"subtotal": subtotal, "taxes": taxes, "total_price": subtotal + taxes}

    def estimate_base_price(self, weight_kg, distance_km=None, goods_type=None) -> Decimal:
        """Simplified price stored on an order at creation time."""
        price = BASE_PRICE
        if distance_km:
            price += to_decimal(distance_km) * PRICE_PER_KM
        price += to_decimal(weight_kg) / 1000 * PRICE_PER_TON
        price *= ESTIMATE_GOODS_MULTIPLIERS.get(goods_type, Decimal("1"))
        return round_amount(price)

    # ── components ────────────────────────────────────────────────────────────
    def _base(self, vehicle_type, goods_type, rule) -> Decimal:
        if rule is not None and rule.base_price is not None:
            base = to_decimal(rule.base_price)
        else:
            base = VEHICLE_BASE_PRICES.get(vehicle_type, BASE_PRICE)
        return base * GOODS_MULTIPLIERS.get(goods_type, Decimal("1"))

    def _distance(self, km, vehicle_type, rule) -> Decimal:
        per_km = PRICE_PER_KM
        if rule is not None and rule.price_per_km is not None:
            per_km = to_decimal(rule.price_per_km)

        if km > 500:
            per_km *= Decimal("0.8")
        elif km > 200:
            per_km *= Decimal("0.9")

        per_km *= HEAVY_VEHICLE_MULTIPLIERS.get(vehicle_type, Decimal("1"))
        return km * per_km

    def _weight(self, tons, rule) -> Decimal:
        per_ton = PRICE_PER_TON
        if rule is not None and rule.price_per_ton is not None:
            per_ton = to_decimal(rule.price_per_ton)

        if tons > 20:
            per_ton *= Decimal("0.85")
        elif tons > 10:
            per_ton *= Decimal("0.92")
        elif tons > 5:
            per_ton *= Decimal("0.95")
        return tons * per_ton

    def _volume(self, volume, vehicle_type) -> Decimal:
        if vehicle_type not in VEHICLE_CAPACITIES:
            return Decimal("0")
        vehicle_volume = Decimal(VEHICLE_CAPACITIES[vehicle_type][1])
        per_m3 = Decimal("800") if vehicle_volume > 100 else Decimal("1200")

        occupancy = volume / vehicle_volume
        multiplier = Decimal("1")
        if occupancy > Decimal("0.8"):
            multiplier = Decimal("1.2")
        elif occupancy > Decimal("0.6"):
            multiplier = Decimal("1.1")
        return volume * per_m3 * multiplier

    def _tolls(self, km) -> Decimal:
        if km > 100:
            return km * TOLL_RATE_PER_KM * Decimal("0.6")
        if km > 50:
            return km * TOLL_RATE_PER_KM * Decimal("0.3")
        return Decimal("0")

    def _handling(self, requirements, goods_type) -> Decimal:
        fees = sum((REQUIREMENT_FEES.get(r, Decimal("0")) for r in requirements), Decimal("0"))
        return fees + GOODS_HANDLING_FEES.get(goods_type, Decimal("0"))

    def _insurance(self, declared_value) -> Decimal:
        value = to_decimal(declared_value)
        if value <= 0:
            return INSURANCE_MINIMUM
        return max(value * INSURANCE_RATE, INSURANCE_MINIMUM)

    def _other(self, is_urgent, departure_date) -> Decimal:
        fees = Decimal("0")
        if is_urgent:
            fees += URGENT_FEE
        if _is_weekend(departure_date):
            fees += WEEKEND_FEE
        return fees
