# start of tests/test_engine.py
# tests/test_engine.py

import math
from io import StringIO

import pandas as pd
import pytest

from buyer_ledger.calculator.engine import (BuyerSummary, InvalidInputError, NormalizedRow,
                                            aggregate, emit_summaries, is_agency_counterparty,
                                            normalize_row, row_commission, summarize_buyers)

TOLERANCE = 0.01


@pytest.fixture
def demo_dataframe():
    """A small sales sheet mixing agency and per-quintal rows, read the way pandas reads CSV."""
    sales_data_csv = """BUYER NAMER,qtls,Amount,MILLER NAME,PLACE,Payment Date
Ramesh,10,"1,000",Nidhi Agros,Hubli,
Ramesh,5,500,Nidhi Agros,,05/03/2024
Suresh,10,1000,OtherCo,Dharwad,
Gita,abc,200,nihi agro,Gadag,2024-03-09
,5,50,OtherCo,Hubli,
Suresh,2.5,300,Sri Traders,Belgaum,
"""
    return pd.read_csv(StringIO(sales_data_csv))


# --- Scenarios ---

def test_agency_rows_pay_one_percent_of_amount():
    rows = [
        {'BUYER': 'Ramesh', 'qtls': '10', 'Amount': '1000', 'MILLER': 'Nidhi Agros'},
        {'BUYER': 'Ramesh', 'qtls': '5', 'Amount': '500', 'MILLER': 'Nidhi Agros'},
    ]
    summary = summarize_buyers(rows)['Ramesh']
    assert summary.total_quantity == 15
    assert abs(summary.commission - 15.00) < TOLERANCE


def test_other_counterparties_pay_per_quintal():
    rows = [{'BUYER': 'Suresh', 'qtls': '10', 'Amount': '1000', 'MILLER': 'OtherCo'}]
    summary = summarize_buyers(rows)['Suresh']
    assert summary.total_quantity == 10
    assert abs(summary.commission - 110.00) < TOLERANCE


def test_unparseable_quantity_counts_as_zero_and_misspelling_still_matches():
    rows = [{'BUYER': 'Gita', 'qtls': 'abc', 'Amount': '200', 'MILLER': 'nihi agro'}]
    summary = summarize_buyers(rows)['Gita']
    assert summary.total_quantity == 0
    assert abs(summary.commission - 2.00) < TOLERANCE


def test_row_without_buyer_is_skipped():
    rows = [{'BUYER': '', 'qtls': '5', 'Amount': '50'}]
    assert summarize_buyers(rows) == {}


def test_whitespace_buyer_is_skipped():
    rows = [
        {'BUYER': '   ', 'qtls': '5', 'Amount': '50'},
        {'BUYER': 'Anil', 'qtls': '1', 'Amount': '50'},
    ]
    assert list(summarize_buyers(rows)) == ['Anil']


def test_buyer_namer_header_resolves_to_buyer():
    rows = [{'Buyer Namer': 'Ramesh', 'qtls': '3', 'Amount': '10', 'MILLER': 'x'}]
    assert 'Ramesh' in summarize_buyers(rows)


def test_day_first_and_year_first_dates_agree():
    first = summarize_buyers([{'BUYER': 'A', 'qtls': '1', 'Date': '05/03/2024'}])['A']
    second = summarize_buyers([{'BUYER': 'A', 'qtls': '1', 'Date': '2024-03-05'}])['A']
    assert first.payment_date == second.payment_date == '05/03/2024'


# --- Aggregation properties ---

def test_full_batch_from_dataframe(demo_dataframe):
    summaries = summarize_buyers(demo_dataframe)

    # First-seen order, blank buyer dropped
    assert list(summaries) == ['Ramesh', 'Suresh', 'Gita']

    ramesh = summaries['Ramesh']
    assert ramesh.total_quantity == 15
    assert abs(ramesh.commission - 15.0) < TOLERANCE
    assert ramesh.place == 'Hubli'  # second row has no place
    assert ramesh.payment_date == '05/03/2024'

    suresh = summaries['Suresh']
    assert suresh.total_quantity == 12.5
    assert abs(suresh.commission - (10 * 11 + 2.5 * 11)) < TOLERANCE
    assert suresh.place == 'Belgaum'  # last non-empty place wins
    assert suresh.payment_date is None

    gita = summaries['Gita']
    assert gita.total_quantity == 0
    assert abs(gita.commission - 2.0) < TOLERANCE
    assert gita.payment_date == '09/03/2024'


def test_last_non_empty_date_wins():
    rows = [
        {'BUYER': 'A', 'qtls': '1', 'Date': '01/01/2024'},
        {'BUYER': 'A', 'qtls': '1', 'Date': '02/01/2024'},
        {'BUYER': 'A', 'qtls': '1', 'Date': ''},
    ]
    assert summarize_buyers(rows)['A'].payment_date == '02/01/2024'


def test_buyer_names_are_trimmed_and_case_sensitive():
    rows = [
        {'BUYER': ' Ramesh ', 'qtls': '1'},
        {'BUYER': 'Ramesh', 'qtls': '2'},
        {'BUYER': 'RAMESH', 'qtls': '4'},
    ]
    summaries = summarize_buyers(rows)
    assert summaries['Ramesh'].total_quantity == 3
    assert summaries['RAMESH'].total_quantity == 4


def test_quantity_is_sum_of_parsed_values():
    quantities = ['1.25', '₹ 2,000', '(3)', '', 'n/a', 4]
    rows = [{'BUYER': 'A', 'qtls': q, 'MILLER': 'x'} for q in quantities]
    summary = summarize_buyers(rows)['A']
    assert summary.total_quantity == pytest.approx(1.25 + 2000 + 3 + 4)
    assert summary.commission == pytest.approx((1.25 + 2000 + 3 + 4) * 11)


def test_overflowing_and_negative_numbers_contribute_nothing():
    rows = [
        {'BUYER': 'A', 'qtls': '1e999', 'Amount': '10', 'MILLER': 'x'},
        {'BUYER': 'A', 'qtls': '-5', 'Amount': '10', 'MILLER': 'x'},
        {'BUYER': 'A', 'qtls': '2', 'Amount': '-100', 'MILLER': 'Nidhi Agros'},
        {'BUYER': 'A', 'qtls': '1', 'Amount': '100', 'MILLER': 'x'},
    ]
    summary = summarize_buyers(rows)['A']
    assert summary.total_quantity == 3
    assert summary.commission == pytest.approx(11.0)


def test_missing_roles_do_not_fail():
    rows = [{'BUYER': 'A', 'Notes': 'hello'}]
    summary = summarize_buyers(rows)['A']
    assert summary == BuyerSummary(buyer='A')


def test_headers_come_from_first_row():
    rows = [
        {'BUYER': 'A', 'qtls': '1'},
        {'BUYER': 'A', 'qtls': '1', 'Quantity': '100'},
    ]
    assert summarize_buyers(rows)['A'].total_quantity == 2


def test_rerunning_gives_identical_output(demo_dataframe):
    rows = demo_dataframe.to_dict(orient='records')
    assert emit_summaries(summarize_buyers(rows)) == emit_summaries(summarize_buyers(rows))


def test_generator_input_is_consumed_once():
    rows = ({'BUYER': name, 'qtls': '1'} for name in ['A', 'B', 'A'])
    summaries = summarize_buyers(rows)
    assert summaries['A'].total_quantity == 2
    assert summaries['B'].total_quantity == 1


def test_empty_batch_gives_empty_mapping():
    assert summarize_buyers([]) == {}
    assert summarize_buyers(pd.DataFrame()) == {}


@pytest.mark.parametrize('bad_input', [None, 'BUYER,qtls', {'BUYER': 'A'}, 42])
def test_non_sequence_input_is_rejected(bad_input):
    with pytest.raises(InvalidInputError):
        summarize_buyers(bad_input)


def test_non_mapping_row_is_rejected():
    with pytest.raises(InvalidInputError):
        summarize_buyers([{'BUYER': 'A'}, ['B', 1]])


def test_explicit_roles_override_resolution():
    rows = [{'Party': 'A', 'Weight': '7'}]
    roles = {'buyer': 'Party', 'quantity': 'Weight', 'amount': None,
             'counterparty': None, 'place': None, 'date': None}
    assert summarize_buyers(rows, roles=roles)['A'].total_quantity == 7


# --- Commission rule ---

@pytest.mark.parametrize('counterparty, expected', [
    ('nidhiagros', True),
    ('nihiagro', True),
    ('mnidhiagroindustries', True),
    ('nidhi', False),
    ('agros', False),
    ('othercoagro', False),
    ('', False),
])
def test_agency_counterparty_tokens(counterparty, expected):
    assert is_agency_counterparty(counterparty) is expected


def test_row_commission_with_missing_numbers():
    agency = NormalizedRow('A', 5.0, math.nan, 'nidhiagros', '', '')
    other = NormalizedRow('A', math.nan, 100.0, 'other', '', '')
    assert row_commission(agency) == 0.0
    assert row_commission(other) == 0.0


def test_normalize_row_reads_typed_fields():
    roles = {'buyer': 'BUYER', 'quantity': 'qtls', 'amount': 'Amount',
             'counterparty': 'MILLER', 'place': 'PLACE', 'date': None}
    row = normalize_row({'BUYER': ' Ravi ', 'qtls': 10.0, 'Amount': '$1,250.50',
                         'MILLER': 'Nidhi  Agro-s!', 'PLACE': ' Hubli '}, roles)
    assert row.buyer_name == 'Ravi'
    assert row.quantity == 10.0
    assert row.amount == 1250.5
    assert row.counterparty == 'nidhiagros'
    assert row.place == 'Hubli'
    assert row.date == ''


def test_aggregate_ignores_blank_buyers():
    rows = [NormalizedRow('', 1.0, 1.0, '', '', ''), NormalizedRow('B', 2.0, 1.0, '', 'X', '')]
    summaries = aggregate(rows)
    assert list(summaries) == ['B']
    assert summaries['B'].place == 'X'
# end of tests/test_engine.py
