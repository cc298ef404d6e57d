# ==============================================================================
# buyer_ledger/calculator/validator.py
# ------------------------------------------------------------------------------
# Reads an uploaded sales workbook into raw rows for the engine.
# ==============================================================================

import pandas as pd


def read_sales_rows(filepath):
    """
    Reads the first sheet of the uploaded workbook into a list of row dicts.

    Missing cells are materialised as '' so every row carries every header.
    Cell values keep their spreadsheet types (str, int, float, datetime).

    Args:
        filepath (str): The path to the uploaded .xlsx/.xls file.

    Returns:
        tuple: A tuple containing:
            - list: The rows (header -> value) if the file could be read.
            - list: A list of human-readable error messages if it could not.
    """
    errors = []

    try:
        xls = pd.ExcelFile(filepath)
        sheet_names = xls.sheet_names
    except Exception as e:
        errors.append(f"Invalid Excel file or format. Technical error: {e}")
        return None, errors

    if not sheet_names:
        xls.close()
        errors.append("The workbook does not contain any sheet.")
        return None, errors

    try:
        with xls:
            df = pd.read_excel(xls, sheet_name=sheet_names[0], dtype=object)
    except Exception as e:
        errors.append(f"An error occurred while reading sheet '{sheet_names[0]}'. Technical error: {e}")
        return None, errors

    # Drop rows where every cell is empty; Excel often keeps formatted blank rows
    df = df.dropna(how='all')
    df = df.astype(object).where(df.notna(), '')

    return df.to_dict(orient='records'), errors


def sheet_headers(rows):
    """Headers of a batch, taken from its first row."""
    if not rows:
        return []
    return list(rows[0].keys())
