"""Thin helpers around the Google Sheets v4 client: auth, A1 notation, value grids."""

import json
import os
import string
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Union

import pandas as pd
from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build

SHEETS_SCOPES = ("https://www.googleapis.com/auth/spreadsheets",)

CredentialsSource = Union[str, Path, Mapping[str, Any], Credentials]


def load_service_account(source: CredentialsSource) -> Credentials:
    """
    Service account credentials from a Credentials object, a key dict,
    a key file path or the raw key JSON.
    """
    if isinstance(source, Credentials):
        return source
    if isinstance(source, Mapping):
        return Credentials.from_service_account_info(dict(source), scopes=list(SHEETS_SCOPES))

    text = str(source)
    if os.path.isfile(text):
        return Credentials.from_service_account_file(text, scopes=list(SHEETS_SCOPES))
    if not text.lstrip().startswith("{"):
        raise FileNotFoundError(f"Service account key '{text}' not found")
    # json.JSONDecodeError is a ValueError, which callers already report.
    return Credentials.from_service_account_info(json.loads(text), scopes=list(SHEETS_SCOPES))


def build_sheets_service(source: CredentialsSource):
    return build("sheets", "v4", credentials=load_service_account(source), cache_discovery=False)


def column_index_to_letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA."""
    letters = ""
    remaining = index + 1
    while remaining:
        remaining, offset = divmod(remaining - 1, len(string.ascii_uppercase))
        letters = string.ascii_uppercase[offset] + letters
    return letters


def quote_sheet_name(sheet_name: str) -> str:
    return "'" + sheet_name.replace("'", "''") + "'"


def values_to_frame(rows: Sequence[Sequence[Any]], width: int) -> pd.DataFrame:
    """
    Sheets API drops trailing empty cells, so rows come back ragged.
    Every row is cut or padded to `width` positional columns.
    """
    frame = pd.DataFrame([list(row) for row in rows], dtype=object)
    return frame.reindex(columns=range(width), fill_value="").fillna("")


def rectangular_values(rows: Sequence[Sequence[Any]]) -> List[List[Any]]:
    """Pads a values range to its widest row, the shape the Sheets UI shows."""
    width = max((len(row) for row in rows), default=0)
    if not width:
        return [[] for _ in rows]
    return values_to_frame(rows, width).values.tolist()


def rgb_to_hex(color: Dict[str, Any] | None) -> str | None:
    """Sheets colors are {red, green, blue} floats in 0..1; missing channels are 0."""
    if not color:
        return None
    channels = [int(round(float(color.get(key, 0) or 0) * 255)) for key in ("red", "green", "blue")]
    return "#{:02X}{:02X}{:02X}".format(*channels)
