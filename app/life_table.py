# ==============================================================================
# Illustrative Life Tables and Portfolio Impact
# ==============================================================================
# Purpose: Generate a synthetic period life table (baseline vs temperature
#          adjusted) for an emissions scenario and adaptation level, and project
#          a simplified financial impact on an annuity / life insurance book.
#          Demonstration arithmetic only, not an actuarial model.
#
# Input Files:
#   - None
#
# Output:
#   - Life table DataFrame and financial impact summary
# ==============================================================================

# ================= IMPORTS =================

import numpy as np
import pandas as pd
from config import EMISSION_SCENARIOS, LIFE_TABLE_CONFIG

# Display precision per column, used when comparing cells
DISPLAY_DECIMALS = {'q': 5, 'l': 0, 'e': 2}

# ================= LIFE TABLE =================

def baseline_mortality(ages):
    """Gompertz-like death probabilities increasing with age"""

    return np.minimum(1.0, 0.0005 + np.exp((ages - 90) * 0.1) * 0.15)

def _survivors(q, radix):
    """Number of lives l(x) at the start of each age"""

    l = np.empty_like(q)
    l[0] = radix
    l[1:] = radix * np.cumprod(1.0 - q[:-1])
    return l

def _life_expectancy(l):
    """Remaining life expectancy e(x) from the survivor curve (mid-year deaths)"""

    # Person-years lived between x and x+1, assuming deaths mid-year
    lived = np.append((l[:-1] + l[1:]) / 2.0, l[-1] / 2.0)
    remaining = np.cumsum(lived[::-1])[::-1]

    with np.errstate(divide='ignore', invalid='ignore'):
        e = np.where(l > 0, remaining / l, 0.0)
    return np.maximum(e, 0.0)

def generate_life_table(scenario=LIFE_TABLE_CONFIG['default_scenario'],
                        adaptation=LIFE_TABLE_CONFIG['default_adaptation']):
    """Period life table for ages 0..max_age, baseline vs temperature adjusted"""

    if scenario not in EMISSION_SCENARIOS:
        raise ValueError(f"Unknown emissions scenario: {scenario}")

    adaptation = min(max(adaptation, 0.0), 1.0)
    uplift = EMISSION_SCENARIOS[scenario]['uplift'] * (1.0 - adaptation)

    ages = np.arange(0, LIFE_TABLE_CONFIG['max_age'] + 1)
    radix = LIFE_TABLE_CONFIG['radix']

    q_base = baseline_mortality(ages)
    q_adj = np.minimum(1.0, q_base * (1.0 + uplift))

    l_base = _survivors(q_base, radix)
    l_adj = _survivors(q_adj, radix)

    return pd.DataFrame({
        'age': ages,
        'q_base': q_base,
        'l_base': np.round(l_base).astype(int),
        'e_base': _life_expectancy(l_base),
        'q_adj': q_adj,
        'l_adj': np.round(l_adj).astype(int),
        'e_adj': _life_expectancy(l_adj),
    })

def collapse_table(table, step=10):
    """Keep every step-th age for the collapsed view"""

    return table[table['age'] % step == 0].reset_index(drop=True)

def cell_trend(adjusted, baseline, column):
    """Compare a cell after display rounding: 'worse', 'better' or '' when equal"""

    decimals = DISPLAY_DECIMALS[column]
    adjusted = round(float(adjusted), decimals)
    baseline = round(float(baseline), decimals)

    if adjusted == baseline:
        return ''

    # Higher death probability is worse; fewer lives or shorter expectancy is worse
    worse = adjusted > baseline if column == 'q' else adjusted < baseline
    return 'worse' if worse else 'better'

# ================= FINANCIAL IMPACT =================

def financial_impact(table, portfolio_size=LIFE_TABLE_CONFIG['default_portfolio'],
                     annuity_share=LIFE_TABLE_CONFIG['default_annuity_share']):
    """Simplified portfolio impact of the change in life expectancy at birth"""

    annuity_share = min(max(annuity_share, 0), 100)
    life_share = 100 - annuity_share

    e0_base = float(table['e_base'].iloc[0])
    e0_adj = float(table['e_adj'].iloc[0])
    diff_percent = (e0_adj - e0_base) / e0_base

    # Longer lives cost annuity writers and delay life insurance claims
    annuity = -diff_percent * portfolio_size * (annuity_share / 100)
    life_insurance = diff_percent * portfolio_size * (life_share / 100)

    return {
        'annuity': annuity,
        'life_insurance': life_insurance,
        'total': annuity + life_insurance,
        'e0_diff': e0_adj - e0_base,
        'annuity_share': annuity_share,
        'life_insurance_share': life_share
    }

def format_currency(amount):
    """Signed whole-euro amount with thousands separators"""

    rounded = int(round(amount))
    sign = '+' if rounded >= 0 else '-'
    return f"{sign}{abs(rounded):,} €"
