"""
Hypothesis-based fuzzing of the invoice calculation.

Properties checked over generated invoices:
- Every monetary output carries exactly two decimal places
- Net base is never negative; payable is at least 0.01 with any line
- Totals are idempotent and equal to sums of per-line rounded values
- Discount total is the absolute difference of the two categories
- Permissive parsing never raises on arbitrary field values
"""

from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from invoice_engines.calculator import InvoiceTaxCalculator
from invoice_kernel.domain.coercion import line_item_from_mapping
from invoice_kernel.domain.invoice import DiscountType, RawLineItem, RawTax, TaxType
from invoice_kernel.domain.values import sum_money

amounts = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("100000"), places=3,
    allow_nan=False, allow_infinity=False,
)
rates = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("100"), places=2,
    allow_nan=False, allow_infinity=False,
)
tax_codes = st.sampled_from(["0003", "0011", "0071", "4171", "8001", "1047", "9040"])
# Spans both sides of the 10**15 input limit.
large_amounts = st.decimals(
    min_value=Decimal("-1e30"), max_value=Decimal("1e30"),
    allow_nan=False, allow_infinity=False,
)


@composite
def raw_taxes(draw):
    return RawTax(
        type=draw(st.sampled_from([TaxType.WITHHOLDING, TaxType.OTHER, TaxType.REVERSE_CHARGE])),
        code=draw(tax_codes),
        rate=draw(st.one_of(st.none(), rates)),
        amount=draw(st.one_of(st.none(), amounts)),
        is_rate_based=draw(st.booleans()),
    )


@composite
def raw_items(draw):
    return RawLineItem(
        name="fuzz",
        quantity=draw(st.one_of(st.none(), st.decimals(
            min_value=Decimal("0"), max_value=Decimal("1000"), places=2,
            allow_nan=False, allow_infinity=False,
        ))),
        unit_price=draw(amounts),
        discount_rate=draw(st.one_of(st.none(), rates)),
        discount_amount=draw(st.one_of(st.none(), amounts)),
        discount_type=draw(st.sampled_from(list(DiscountType))),
        vat_rate=draw(st.sampled_from([Decimal("0"), Decimal("1"), Decimal("10"), Decimal("20")])),
        taxes=tuple(draw(st.lists(raw_taxes(), max_size=3))),
    )


def _is_money(value: Decimal) -> bool:
    return isinstance(value, Decimal) and value.as_tuple().exponent == -2


FUZZ_SETTINGS = settings(
    max_examples=150,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)


class TestLineItemProperties:
    @given(raw=raw_items())
    @FUZZ_SETTINGS
    def test_line_fields_rounded_and_non_negative(self, raw):
        item = InvoiceTaxCalculator().add_item(raw)

        for value in (
            item.gross_price, item.discount_amount, item.net_base,
            item.vat_amount, item.reverse_charge_amount,
        ):
            assert _is_money(value)
        assert item.net_base >= 0
        assert all(_is_money(t.amount) for t in item.computed_taxes)

    @given(raw=raw_items())
    @FUZZ_SETTINGS
    def test_line_calculation_deterministic(self, raw):
        assert InvoiceTaxCalculator().add_item(raw) == InvoiceTaxCalculator().add_item(raw)


class TestTotalsProperties:
    @given(raws=st.lists(raw_items(), min_size=1, max_size=6))
    @FUZZ_SETTINGS
    def test_totals_invariants(self, raws):
        calculator = InvoiceTaxCalculator()
        calculator.add_items(raws)

        totals = calculator.calculate_totals()

        for name in totals.__dataclass_fields__:
            assert _is_money(getattr(totals, name)), name
        assert totals.net_base >= 0
        assert totals.submission_net_base >= Decimal("0.01")
        assert totals.payable_amount >= Decimal("0.01")
        assert totals.net_base == sum_money(i.net_base for i in calculator.items)
        assert totals.vat_total == sum_money(i.vat_amount for i in calculator.items)
        assert calculator.calculate_totals() == totals

    @given(raws=st.lists(raw_items(), max_size=6))
    @FUZZ_SETTINGS
    def test_discount_total_is_absolute_difference(self, raws):
        calculator = InvoiceTaxCalculator()
        calculator.add_items(raws)
        items = calculator.items

        decreases = sum_money(i.discount_amount for i in items if i.discount_type == DiscountType.DECREASE)
        increases = sum_money(i.discount_amount for i in items if i.discount_type == DiscountType.INCREASE)

        assert calculator.calculate_totals().discount_total == abs(decreases - increases)

    @given(raws=st.lists(raw_items(), max_size=6))
    @FUZZ_SETTINGS
    def test_grouped_taxes_positive_and_unique(self, raws):
        calculator = InvoiceTaxCalculator()
        calculator.add_items(raws)

        grouped = calculator.group_taxes()

        assert len({g.code for g in grouped}) == len(grouped)
        assert all(g.total_amount > 0 for g in grouped)


class TestPermissiveParsing:
    @given(data=st.dictionaries(
        st.sampled_from(["quantity", "unitPrice", "vatRate", "discountRate", "discountAmount", "discountType"]),
        st.one_of(
            large_amounts.map(str),
            st.none(),
            st.booleans(),
            st.text(alphabet="abc,. -", max_size=8),
            st.sampled_from(["12,5", "1.000,50", "0", "NaN", "-3"]),
            st.integers(min_value=-10**6, max_value=10**6),
            st.floats(min_value=-1e6, max_value=1e6),
        ),
    ))
    @FUZZ_SETTINGS
    def test_never_raises(self, data):
        item = InvoiceTaxCalculator().add_item(line_item_from_mapping(data))

        assert item.net_base >= 0

    @given(
        price=large_amounts,
        quantity=large_amounts,
        rate=large_amounts,
    )
    @FUZZ_SETTINGS
    def test_large_magnitudes_never_raise(self, price, quantity, rate):
        calculator = InvoiceTaxCalculator()
        item = calculator.add_item({
            "quantity": str(quantity),
            "unitPrice": str(price),
            "vatRate": str(rate),
            "discountRate": str(rate),
            "taxes": [
                {"type": "OTHER", "code": "4171", "rate": str(rate)},
                {"type": "TEVKIFAT", "code": "601", "rate": str(rate)},
            ],
        })

        assert item.net_base >= 0
        assert calculator.calculate_totals().payable_amount >= Decimal("0.01")

    @given(taxes=st.lists(st.one_of(
        st.text(max_size=4),
        st.integers(),
        st.none(),
        st.lists(st.integers(), max_size=2),
        st.fixed_dictionaries({"type": st.sampled_from(["STOPAJ", "OTHER"]), "code": tax_codes}),
    ), max_size=4))
    @FUZZ_SETTINGS
    def test_non_mapping_tax_entries_skipped(self, taxes):
        item = InvoiceTaxCalculator().add_item({"unitPrice": "100", "taxes": taxes})

        expected = sum(1 for t in taxes if isinstance(t, dict))
        assert len(item.computed_taxes) == expected
