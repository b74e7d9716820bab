from decimal import Decimal

import pytest

from rice_ledger.utils.quantities import bags_for_weight, to_kg, to_money


@pytest.mark.parametrize("weight, weight_per_bag, bags", [
    (Decimal("26"), 26, 1),
    (Decimal("26.001"), 26, 2),
    (Decimal("60"), 25, 3),
    (Decimal("0.5"), 1, 1),
    (Decimal("150"), 75, 2),
])
def test_bags_for_weight_rounds_up(weight, weight_per_bag, bags):
    assert bags_for_weight(weight, weight_per_bag) == bags


def test_bags_for_weight_rejects_zero_bag_weight():
    with pytest.raises(ValueError):
        bags_for_weight(Decimal("10"), 0)


def test_to_money_rounds_half_up():
    assert to_money("2.345") == Decimal("2.35")
    assert to_money(0.1 + 0.2) == Decimal("0.30")


def test_to_kg_keeps_three_places():
    assert to_kg("1.2345") == Decimal("1.235")
    assert to_kg(26) == Decimal("26.000")
