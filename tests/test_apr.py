import pytest

from loancalc.calculators import calculate_apr, monthly_payment, solve_apr


def test_apr_equals_note_rate_without_finance_charges():
    pmt = monthly_payment(300000, 6.5, 30)
    sol = solve_apr(0, pmt, 360, 300000)
    assert sol.ok
    assert sol.converged
    assert sol.apr == pytest.approx(6.5, abs=0.01)


def test_apr_rises_with_finance_charges():
    pmt = monthly_payment(300000, 6.5, 30)
    low = calculate_apr(3000, pmt, 360, 300000)
    high = calculate_apr(9000, pmt, 360, 300000)
    assert 6.5 < low < high


def test_apr_known_value():
    # $4,000 of prepaid finance charges on $200k at 6% over 30 years
    pmt = monthly_payment(200000, 6.0, 30)
    apr = calculate_apr(4000, pmt, 360, 200000)
    assert 6.15 < apr < 6.25


@pytest.mark.parametrize(
    "charges,pmt,n,loan",
    [
        (0, 1000, 360, 0),
        (200000, 1000, 360, 200000),
        (0, 0, 360, 200000),
        (0, 1000, 0, 200000),
    ],
)
def test_degenerate_inputs_return_zero(charges, pmt, n, loan):
    sol = solve_apr(charges, pmt, n, loan)
    assert sol.apr == 0
    assert not sol.ok
    assert not sol.converged


def test_apr_is_clamped_to_solver_bounds():
    # payments far too large for the amount financed push the rate to the ceiling
    sol = solve_apr(0, 100000, 360, 100000)
    assert sol.ok
    assert sol.apr <= 50.0
