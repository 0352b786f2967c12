import math

import pytest

from life_table import (
    baseline_mortality,
    cell_trend,
    collapse_table,
    financial_impact,
    format_currency,
    generate_life_table,
)


def test_table_shape_and_radix():
    table = generate_life_table('rcp45', 0.0)

    assert list(table.columns) == ['age', 'q_base', 'l_base', 'e_base', 'q_adj', 'l_adj', 'e_adj']
    assert table['age'].tolist() == list(range(101))
    assert table['l_base'].iloc[0] == 100000
    assert table['l_adj'].iloc[0] == 100000


def test_baseline_mortality_rises_with_age():
    table = generate_life_table()
    assert table['q_base'].is_monotonic_increasing
    assert table['q_base'].iloc[0] == pytest.approx(0.0005 + 0.15 * math.exp(-9))
    assert (table['q_adj'] <= 1.0).all()
    assert baseline_mortality(200) == 1.0


def test_full_adaptation_removes_the_uplift():
    table = generate_life_table('rcp85', 1.0)
    assert (table['q_adj'] == table['q_base']).all()
    assert (table['e_adj'] == table['e_base']).all()


def test_higher_emissions_shorten_life_expectancy():
    low = generate_life_table('rcp26', 0.0)
    high = generate_life_table('rcp85', 0.0)

    assert high['e_adj'].iloc[0] < low['e_adj'].iloc[0] < low['e_base'].iloc[0]
    assert (high['q_adj'] >= low['q_adj']).all()


def test_adaptation_is_clamped():
    assert generate_life_table('rcp45', 1.7).equals(generate_life_table('rcp45', 1.0))


def test_unknown_scenario():
    with pytest.raises(ValueError):
        generate_life_table('rcp60')


def test_collapsed_view_keeps_every_tenth_age():
    assert collapse_table(generate_life_table())['age'].tolist() == list(range(0, 101, 10))


def test_cell_trend_uses_display_precision():
    assert cell_trend(0.001, 0.0009, 'q') == 'worse'
    assert cell_trend(0.0009, 0.001, 'q') == 'better'
    assert cell_trend(0.000011, 0.000012, 'q') == ''
    assert cell_trend(99000, 99100, 'l') == 'worse'
    assert cell_trend(80.12, 80.10, 'e') == 'better'


def test_financial_impact_signs():
    table = generate_life_table('rcp85', 0.0)
    impact = financial_impact(table, 10_000_000, 30)

    # Shorter lives release annuity reserves and bring life claims forward
    assert impact['e0_diff'] < 0
    assert impact['annuity'] > 0
    assert impact['life_insurance'] < 0
    assert impact['total'] == pytest.approx(impact['annuity'] + impact['life_insurance'])
    assert impact['life_insurance_share'] == 70

    e0_base = table['e_base'].iloc[0]
    assert impact['annuity'] == pytest.approx(-impact['e0_diff'] / e0_base * 10_000_000 * 0.3)


def test_no_change_without_uplift():
    impact = financial_impact(generate_life_table('rcp45', 1.0))
    assert impact['annuity'] == 0
    assert impact['life_insurance'] == 0


def test_format_currency():
    assert format_currency(1234.4) == '+1,234 €'
    assert format_currency(-1500) == '-1,500 €'
    assert format_currency(-0.4) == '+0 €'


def test_survivors_decline_and_expectancy_is_non_negative():
    table = generate_life_table('rcp85', 0.25)
    for column in ('l_base', 'l_adj'):
        assert table[column].is_monotonic_decreasing
    assert (table[['e_base', 'e_adj']] >= 0).all().all()
