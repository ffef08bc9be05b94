from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from comapeo_builder.services import sheets_config
from gsheets_client.sheets import (
    build_sheets_service,
    column_index_to_letter,
    quote_sheet_name,
    rectangular_values,
    rgb_to_hex,
)

logger = logging.getLogger(__name__)

WHITE = "#FFFFFF"


class SpreadsheetConfigurationError(ValueError):
    """Raised when the spreadsheet cannot be reached or is missing expected sheets."""


def format_refresh_error(exc: RefreshError) -> str:
    """
    Human readable message for token refresh / JWT failures.
    """
    # Usually arrives as ('invalid_grant: Invalid JWT Signature.', {...})
    message = ""
    for arg in exc.args:
        if isinstance(arg, str):
            message = arg
            break
        if isinstance(arg, dict):
            descr = arg.get("error_description") or arg.get("error")
            if descr:
                message = descr
                break
    if not message:
        message = str(exc)
    return f"Google authorization failed (JWT): {message}. Check the service account credentials."


class SpreadsheetGateway:
    def __init__(self, spreadsheet_id: str, service: Any):
        if not spreadsheet_id:
            raise SpreadsheetConfigurationError("SPREADSHEET_ID is not set in sheets_config.json")
        self.spreadsheet_id = spreadsheet_id
        self.service = service
        self._properties: Optional[Dict[str, Any]] = None

    @classmethod
    def from_settings(cls) -> "SpreadsheetGateway":
        settings = sheets_config.load_settings()
        if not settings.spreadsheet_id:
            raise SpreadsheetConfigurationError("SPREADSHEET_ID is not set in sheets_config.json")
        try:
            service = build_sheets_service(str(settings.credentials_file))
        except (FileNotFoundError, ValueError) as exc:
            raise SpreadsheetConfigurationError(f"Could not load Google credentials: {exc}") from exc
        return cls(settings.spreadsheet_id, service)

    def _execute(self, request: Any) -> Dict[str, Any]:
        try:
            return request.execute()
        except RefreshError as exc:
            message = format_refresh_error(exc)
            logger.warning(message)
            raise SpreadsheetConfigurationError(message) from exc
        except HttpError as exc:
            status = getattr(exc.resp, "status", "?")
            logger.error("Sheets API request failed (%s): %s", status, exc)
            raise SpreadsheetConfigurationError(f"Sheets API request failed ({status}): {exc}") from exc

    def _spreadsheet_properties(self, refresh: bool = False) -> Dict[str, Any]:
        if self._properties is None or refresh:
            self._properties = self._execute(
                self.service.spreadsheets().get(
                    spreadsheetId=self.spreadsheet_id,
                    fields="properties.title,sheets.properties",
                )
            )
        return self._properties

    def sheet_titles(self) -> List[str]:
        sheets = self._spreadsheet_properties().get("sheets", [])
        return [sheet.get("properties", {}).get("title", "") for sheet in sheets]

    def document_name(self) -> str:
        return self._spreadsheet_properties().get("properties", {}).get("title") or "Unnamed Config"

    def _sheet_id(self, title: str) -> Optional[int]:
        for sheet in self._spreadsheet_properties().get("sheets", []):
            props = sheet.get("properties", {})
            if props.get("title") == title:
                return props.get("sheetId")
        return None

    def read_sheets(self, names: Iterable[str]) -> Dict[str, List[List[Any]]]:
        names = list(names)
        existing = set(self.sheet_titles())
        wanted = [name for name in names if name in existing]
        missing = [name for name in names if name not in existing]
        if missing:
            logger.info("Sheets not present in spreadsheet: %s", ", ".join(missing))
        if not wanted:
            return {}

        response = self._execute(
            self.service.spreadsheets()
            .values()
            .batchGet(spreadsheetId=self.spreadsheet_id, ranges=[quote_sheet_name(name) for name in wanted])
        )
        result: Dict[str, List[List[Any]]] = {}
        for name, value_range in zip(wanted, response.get("valueRanges", [])):
            # values.batchGet drops trailing empty cells in every row.
            result[name] = rectangular_values(value_range.get("values") or [])
        logger.info("Read %d sheet(s) from %s", len(result), self.spreadsheet_id)
        return result

    def read_background_colors(self, sheet: str, rows: int, column: int = 0) -> List[Optional[str]]:
        """Background color of column cells for data rows 2..rows+1, None for white or unset."""
        if rows <= 0:
            return []
        letter = column_index_to_letter(column)
        response = self._execute(
            self.service.spreadsheets().get(
                spreadsheetId=self.spreadsheet_id,
                ranges=[f"{quote_sheet_name(sheet)}!{letter}2:{letter}{rows + 1}"],
                includeGridData=True,
                fields="sheets.data.rowData.values.effectiveFormat.backgroundColor",
            )
        )
        colors: List[Optional[str]] = []
        sheets = response.get("sheets") or [{}]
        data = (sheets[0].get("data") or [{}])[0]
        for row in data.get("rowData", []):
            values = row.get("values") or [{}]
            color = rgb_to_hex((values[0].get("effectiveFormat") or {}).get("backgroundColor"))
            colors.append(None if color in (None, WHITE) else color)
        colors.extend([None] * (rows - len(colors)))
        return colors[:rows]

    def _ensure_sheet(self, name: str) -> None:
        if self._sheet_id(name) is not None:
            return
        logger.info("Creating sheet %s", name)
        self._execute(
            self.service.spreadsheets().batchUpdate(
                spreadsheetId=self.spreadsheet_id,
                body={"requests": [{"addSheet": {"properties": {"title": name}}}]},
            )
        )
        self._spreadsheet_properties(refresh=True)
        if self._sheet_id(name) is None:
            raise SpreadsheetConfigurationError(f"Sheet '{name}' could not be created")

    def write_sheet(self, name: str, grid: Sequence[Sequence[Any]]) -> None:
        self._ensure_sheet(name)
        quoted = quote_sheet_name(name)
        self._execute(
            self.service.spreadsheets().values().clear(spreadsheetId=self.spreadsheet_id, range=quoted, body={})
        )
        if not grid:
            return
        width = max(len(row) for row in grid) or 1
        end = f"{column_index_to_letter(width - 1)}{len(grid)}"
        self._execute(
            self.service.spreadsheets().values().update(
                spreadsheetId=self.spreadsheet_id,
                range=f"{quoted}!A1:{end}",
                valueInputOption="RAW",
                body={"values": [list(row) for row in grid]},
            )
        )
        logger.info("Wrote %d row(s) to %s", len(grid), name)
