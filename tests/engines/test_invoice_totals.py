"""
Tests for the Totals Aggregator.

Covers:
- Gross, net base, VAT and discount totals
- Taxes total vs payable deduction by stoppage/withholding class
- Minimum base and payable guards
- Idempotence and summing of rounded line values
"""

from decimal import Decimal

from invoice_engines.totals import aggregate_totals, discount_total
from invoice_kernel.domain.invoice import DiscountType, TaxType
from tests.conftest import D, make_item, make_tax


class TestBasicTotals:
    """Totals for invoices without secondary taxes."""

    def test_single_line(self, calculator):
        calculator.add_item(make_item(discount_rate="10"))

        totals = calculator.calculate_totals()

        assert totals.gross_total == D("100.00")
        assert totals.net_base == D("90.00")
        assert totals.submission_net_base == D("90.00")
        assert totals.vat_total == D("16.20")
        assert totals.discount_total == D("10.00")
        assert totals.taxes_total == D("16.20")
        assert totals.tax_inclusive_total == D("106.20")
        assert totals.payable_amount == D("106.20")
        assert totals.reverse_charge_total == D("0.00")

    def test_multiple_lines(self, calculator):
        calculator.add_item(make_item(quantity="2", unit_price="50"))
        calculator.add_item(make_item(unit_price="40", vat_rate="8"))

        totals = calculator.calculate_totals()

        assert totals.gross_total == D("140.00")
        assert totals.net_base == D("140.00")
        assert totals.vat_total == D("21.20")
        assert totals.payable_amount == D("161.20")

    def test_empty_invoice_has_zero_totals(self, calculator):
        """Guards only apply when there is at least one line."""
        totals = calculator.calculate_totals()

        assert totals.net_base == D("0.00")
        assert totals.submission_net_base == D("0.00")
        assert totals.payable_amount == D("0.00")


class TestSecondaryTaxTotals:
    """Stoppage and withholding classes route amounts differently."""

    def test_stoppage_deducted_not_in_taxes_total(self, calculator):
        calculator.add_item(
            make_item(taxes=[make_tax(TaxType.WITHHOLDING, "0003", rate="20")])
        )

        totals = calculator.calculate_totals()

        assert totals.taxes_total == D("18.00")
        assert totals.tax_inclusive_total == D("118.00")
        assert totals.payable_amount == D("98.00")

    def test_plain_tax_in_taxes_total_not_deducted(self, calculator):
        calculator.add_item(
            make_item(taxes=[make_tax(code="1047", amount="5", is_rate_based=False)])
        )

        totals = calculator.calculate_totals()

        assert totals.taxes_total == D("23.00")
        assert totals.tax_inclusive_total == D("123.00")
        assert totals.payable_amount == D("123.00")

    def test_withholding_only_tax_counted_and_deducted(self, calculator):
        """4171 is withholding but not stoppage: in taxes total and deducted."""
        calculator.add_item(
            make_item(
                vat_rate="20",
                taxes=[make_tax(code="4171", amount="2", is_rate_based=False)],
            )
        )

        totals = calculator.calculate_totals()

        assert totals.vat_total == D("20.40")
        assert totals.taxes_total == D("22.40")
        assert totals.tax_inclusive_total == D("122.40")
        assert totals.payable_amount == D("120.40")

    def test_reverse_charge(self, calculator):
        calculator.add_item(
            make_item(taxes=[make_tax(TaxType.REVERSE_CHARGE, "601", rate="50")])
        )

        totals = calculator.calculate_totals()

        assert totals.reverse_charge_total == D("9.00")
        assert totals.taxes_total == D("18.00")
        assert totals.tax_inclusive_total == D("118.00")
        assert totals.payable_amount == D("109.00")


class TestGuards:
    """Minimum base and payable floors."""

    def test_zero_base_replaced_for_submission(self, calculator, captured_logs):
        calculator.add_item(make_item(unit_price="5", discount_amount="10"))

        totals = calculator.calculate_totals()

        assert totals.net_base == D("0.00")
        assert totals.submission_net_base == D("0.01")
        assert totals.tax_inclusive_total == D("0.01")
        assert totals.payable_amount == D("0.01")
        assert any(r["message"] == "submission_base_guard_applied" for r in captured_logs())

    def test_dependent_totals_recomputed_from_guarded_base(self, calculator):
        calculator.add_item(
            make_item(
                unit_price="5",
                discount_amount="10",
                taxes=[make_tax(code="1047", amount="5", is_rate_based=False)],
            )
        )

        totals = calculator.calculate_totals()

        assert totals.taxes_total == D("5.00")
        assert totals.tax_inclusive_total == D("5.01")
        assert totals.payable_amount == D("5.01")

    def test_zero_payable_clamped(self, calculator, captured_logs):
        calculator.add_item(
            make_item(vat_rate="0", taxes=[make_tax(TaxType.WITHHOLDING, "0003", rate="100")])
        )

        totals = calculator.calculate_totals()

        assert totals.net_base == D("100.00")
        assert totals.submission_net_base == D("100.00")
        assert totals.tax_inclusive_total == D("100.00")
        assert totals.payable_amount == D("0.01")
        assert any(r["message"] == "payable_amount_guard_applied" for r in captured_logs())

    def test_negative_payable_clamped(self, calculator):
        calculator.add_item(
            make_item(vat_rate="0", taxes=[make_tax(TaxType.WITHHOLDING, "0003", rate="150")])
        )

        assert calculator.calculate_totals().payable_amount == D("0.01")


class TestDiscountTotal:
    """Discount total is the absolute difference of the two categories."""

    def test_mixed_types_use_difference(self, calculator):
        calculator.add_item(make_item(discount_rate="10"))
        calculator.add_item(
            make_item(discount_amount="4", discount_type=DiscountType.INCREASE)
        )

        totals = calculator.calculate_totals()

        assert totals.discount_total == D("6.00")
        assert totals.discount_total != D("14.00")

    def test_increase_exceeding_decrease_is_positive(self, calculator):
        calculator.add_item(make_item(discount_amount="3"))
        calculator.add_item(
            make_item(discount_amount="8", discount_type=DiscountType.INCREASE)
        )

        assert discount_total(calculator.items) == D("5.00")


class TestAggregation:
    """Summing behaviour and purity."""

    def test_idempotent(self, calculator):
        calculator.add_item(make_item(discount_rate="7", taxes=[make_tax(code="0071", rate="3")]))
        calculator.add_item(make_item(taxes=[make_tax(TaxType.REVERSE_CHARGE, "601", rate="50")]))

        first = calculator.calculate_totals()
        second = calculator.calculate_totals()

        assert first == second
        for name in first.__dataclass_fields__:
            assert str(getattr(first, name)) == str(getattr(second, name))

    def test_sums_rounded_line_values(self, calculator):
        """Three lines of 0.333 sum to 0.99, not round(0.999)."""
        for _ in range(3):
            calculator.add_item(make_item(unit_price="0.333"))

        totals = calculator.calculate_totals()

        assert totals.net_base == D("0.99")
        assert totals.vat_total == D("0.18")
        assert totals.net_base == sum(i.net_base for i in calculator.items)

    def test_totals_do_not_mutate_items(self, calculator):
        calculator.add_item(make_item(taxes=[make_tax(TaxType.WITHHOLDING, "0003", rate="10")]))
        before = calculator.items

        aggregate_totals(calculator.items)

        assert calculator.items == before

    def test_totals_stale_after_adding(self, calculator):
        calculator.add_item(make_item())
        before = calculator.calculate_totals()

        calculator.add_item(make_item())

        assert calculator.calculate_totals().net_base == before.net_base * 2

    def test_all_fields_two_decimals(self, calculator):
        calculator.add_item(
            make_item(quantity="3", unit_price="19.99", discount_rate="12.5",
                      taxes=[make_tax(code="0071", rate="4"), make_tax(TaxType.REVERSE_CHARGE, "601", rate="30")])
        )

        totals = calculator.calculate_totals()

        for name in totals.__dataclass_fields__:
            value = getattr(totals, name)
            assert isinstance(value, Decimal)
            assert value.as_tuple().exponent == -2, name
