# ==============================================================================
# buyer_ledger/calculator/schema.py
# ------------------------------------------------------------------------------
# Defines how the columns of an uploaded sales sheet are recognised and the
# fixed business rules applied to them.
# This schema is the single source of truth for the header resolver and engine.
# ==============================================================================

# Role -> ordered candidate synonyms. Candidates are lower-case and matched
# against lower-cased headers. 'exact' roles try whole-header equality first.
HEADER_RULES = {
    'buyer': {
        'candidates': ['buyer', 'buyer name', 'buyername', 'buyer namer'],
        'exact': False
    },
    'quantity': {
        'candidates': ['qtls', 'qtl', 'quintal', 'quantity', 'qty'],
        'exact': False
    },
    'amount': {
        'candidates': ['amount', 'amt'],
        'exact': False
    },
    'counterparty': {
        'candidates': ['miller name', 'miller', 'seller name', 'seller'],
        'exact': False
    },
    'place': {
        'candidates': ['place', 'location', 'village', 'town', 'city'],
        'exact': True
    },
    'date': {
        'candidates': ['payment date', 'paid date', 'date'],
        'exact': False
    }
}

# --- Commission tariff ---
# Rows sold through the agency pay a percentage of the amount,
# everyone else pays a flat rate per quintal.
AGENCY_COMMISSION_RATE = 0.01
PER_QUANTITY_COMMISSION = 11

# A counterparty is the agency when its normalised name contains one of the
# primary tokens AND one of the suffix tokens. 'nihi' is a known misspelling.
AGENCY_PRIMARY_TOKENS = ('nidhi', 'nihi')
AGENCY_SUFFIX_TOKENS = ('agro',)

# --- Date handling ---
CANONICAL_DATE_FORMAT = '%d/%m/%Y'
TWO_DIGIT_YEAR_CENTURY = 2000

# Excel stores dates as days since 1899-12-30. Upper bound is 9999-12-31.
EXCEL_EPOCH = (1899, 12, 30)
EXCEL_MAX_SERIAL = 2958465

# --- Export layout ---
EXPORT_COLUMNS = [
    'SL No', 'Buyer Name', 'Place', 'Total Qtls', 'Commission Amount',
    'Received Amount', 'Chq/RTGS/Cash', 'Payment Date'
]
