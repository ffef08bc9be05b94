from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


DEFAULT_GEOMETRY = ["point", "line", "area"]
DEFAULT_COLOR = "#0000FF"


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    SELECT_ONE = "selectOne"
    SELECT_MULTIPLE = "selectMultiple"

    @property
    def has_options(self) -> bool:
        return self in (FieldType.SELECT_ONE, FieldType.SELECT_MULTIPLE)


# --- Configuration entities ---
class FieldOption(BaseModel):
    label: str
    value: str


class FieldDefinition(BaseModel):
    tag_key: str
    type: FieldType = FieldType.SELECT_ONE
    label: str
    helper_text: str = ""
    options: List[FieldOption] = Field(default_factory=list)
    universal: bool = False


class Preset(BaseModel):
    icon: str
    name: str
    color: str = DEFAULT_COLOR
    fields: List[str] = Field(default_factory=list)
    geometry: List[str] = Field(default_factory=lambda: list(DEFAULT_GEOMETRY))
    sort: int = 0
    terms: List[str] = Field(default_factory=list)
    icon_source: str = ""
    icon_id: Optional[str] = None


# --- API payloads ---
class IssueOut(BaseModel):
    kind: str
    severity: str
    message: str
    sheet: Optional[str] = None
    row: Optional[int] = None


class ValidationReport(BaseModel):
    valid: bool
    errors: List[IssueOut] = Field(default_factory=list)
    warnings: List[IssueOut] = Field(default_factory=list)


class TranslationPreview(BaseModel):
    primary_language: str
    languages: List[str]
    messages: Dict[str, Dict[str, Any]]
    issues: List[IssueOut] = Field(default_factory=list)


class BuildSummary(BaseModel):
    file_name: str
    size_bytes: int
    categories_count: int
    fields_count: int
    icons_count: int
    languages: List[str]
    category_selection: List[str]
    warnings: List[IssueOut] = Field(default_factory=list)


class ImportSummary(BaseModel):
    format: str
    config_name: str
    categories_count: int
    fields_count: int
    languages: List[str]
    sheets_written: List[str]
    parse_errors: List[str] = Field(default_factory=list)


class LanguageOut(BaseModel):
    code: str
    english: str
    native: str


class HeaderResolution(BaseModel):
    header: str
    code: Optional[str] = None


class SettingsInfo(BaseModel):
    spreadsheet_id: str
    credentials_path: str


class SettingsUpdate(BaseModel):
    spreadsheet_id: Optional[str] = None
    credentials_path: Optional[str] = None


class CredentialsUpload(BaseModel):
    data: Dict[str, Any]
    path: Optional[str] = None
