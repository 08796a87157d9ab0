from decimal import Decimal

from src.hr_payroll.hr_payroll.payroll.calculator.standard_calculator import StandardPayrollCalculator
from src.hr_payroll.hr_payroll.payroll.model import LineItem


def test_standard_calculator_adds_allowances_and_subtracts_deductions_and_tax():
    calc = StandardPayrollCalculator()
    allowances = [LineItem("HRA", Decimal("15000")), LineItem("Transport", Decimal("3000"))]
    deductions = [LineItem("PF", Decimal("5000"))]

    gross = calc.gross(Decimal("50000"), allowances)

    assert gross == Decimal("68000")
    assert calc.net(gross, deductions, Decimal("8000")) == Decimal("55000")


def test_standard_calculator_does_not_clamp_net():
    calc = StandardPayrollCalculator()
    gross = calc.gross(Decimal("1000"), [])

    assert calc.net(gross, [LineItem("Loan", Decimal("1500"))], Decimal("0")) == Decimal("-500")
