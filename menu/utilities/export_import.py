"""
Export and Import codecs for menu items (JSON and CSV interchange payloads).
"""
import csv
import io
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from pydantic import ValidationError

from menu.domain.MenuItem import MenuItem
from menu.domain.errors import MenuValidationError
from menu.utilities.constants import CSV_COLUMNS, EXPORT_FORMATS
from menu.utilities.validators import ImportRecord, describe_errors

logger = logging.getLogger(__name__)


def _plain_number(value) -> str:
    """3.5 -> '3.5', 4.0 -> '4' (matches what the mobile app used to emit)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _quoted(text: Optional[str]) -> str:
    return '"' + (text or "").replace('"', '""') + '"'


class MenuExporter:
    """Export menu items as JSON or CSV text."""

    @staticmethod
    def to_json(items: Iterable[MenuItem]) -> str:
        return json.dumps([item.to_dict() for item in items], indent=2, ensure_ascii=False)

    @staticmethod
    def to_csv(items: Iterable[MenuItem]) -> str:
        """Fixed column order; name and description are always quoted."""
        lines = [",".join(CSV_COLUMNS)]
        for item in items:
            lines.append(",".join([
                item.id,
                _quoted(item.name),
                _plain_number(item.price),
                _quoted(item.description),
                item.category or "",
                "true" if item.available else "false",
                _plain_number(item.popularity or 0),
                _plain_number(item.revenue or 0),
            ]))
        return "\n".join(lines)

    def export(self, items: Iterable[MenuItem], fmt: str) -> str:
        if fmt == "json":
            return self.to_json(items)
        if fmt == "csv":
            return self.to_csv(items)
        raise MenuValidationError(f"Unsupported export format: {fmt!r}")

    def export_to_file(self, items: Iterable[MenuItem], fmt: str, output_path: Path = None) -> Path:
        """Write an export payload to disk and return its path."""
        items = list(items)
        if output_path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            output_path = Path(f"menu_export_{timestamp}.{fmt}")
        payload = self.export(items, fmt)
        with open(output_path, 'w', encoding='utf-8', newline='') as f:
            f.write(payload)
        logger.info(f"Exported {len(items)} menu items to {output_path}")
        return Path(output_path)


@dataclass
class ParsedImport:
    """Valid records with their reported row numbers, plus per-row error messages."""
    records: List[Tuple[int, ImportRecord]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    aborted: bool = False


class MenuImporter:
    """Parse JSON or CSV payloads into validated import records."""

    _CSV_FIELDS = {"name", "price", "description", "category", "available", "popularity", "revenue"}
    _JSON_ALIASES = {"imageUrl": "image_url"}

    def parse(self, data: str, fmt: str) -> ParsedImport:
        if fmt == "json":
            return self.parse_json(data)
        if fmt == "csv":
            return self.parse_csv(data)
        raise MenuValidationError(f"Unsupported import format: {fmt!r}")

    def parse_json(self, data: str) -> ParsedImport:
        """Rows are numbered from 1 in the order they appear."""
        try:
            parsed = json.loads(data)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error(f"Import failed, invalid JSON: {e}")
            return ParsedImport(errors=["Invalid JSON format"], aborted=True)
        raw_records = parsed if isinstance(parsed, list) else [parsed]
        result = ParsedImport()
        for index, raw in enumerate(raw_records):
            row = index + 1
            if not isinstance(raw, dict):
                result.errors.append(f"Row {row}: Record must be an object")
                continue
            raw = {self._JSON_ALIASES.get(k, k): v for k, v in raw.items()}
            self._validate(row, raw, result)
        return result

    def parse_csv(self, data: str) -> ParsedImport:
        """Row numbers are file line numbers (the header is line 1); blank lines are skipped."""
        reader = csv.reader(io.StringIO(data or ""), skipinitialspace=True)
        headers = None
        result = ParsedImport()
        data_rows = 0
        line = 0
        for values in reader:
            row = line + 1
            line = reader.line_num
            if not any(v.strip() for v in values):
                continue
            if headers is None:
                headers = [h.strip().lower() for h in values]
                continue
            data_rows += 1
            raw = {}
            for header, value in zip(headers, values):
                if header in self._CSV_FIELDS:
                    raw[header] = value.strip()
            self._validate(row, raw, result)
        if not data_rows:
            logger.error("Import failed, CSV has no data rows")
            return ParsedImport(errors=["CSV must have at least header and one data row"], aborted=True)
        return result

    @staticmethod
    def _validate(row: int, raw: dict, result: ParsedImport) -> None:
        try:
            record = ImportRecord.model_validate(raw)
        except ValidationError as e:
            result.errors.append(f"Row {row}: {describe_errors(e)}")
            return
        if not record.has_required():
            result.errors.append(f"Row {row}: Missing required fields (name, category)")
            return
        result.records.append((row, record))


__all__ = ["MenuExporter", "MenuImporter", "ParsedImport", "EXPORT_FORMATS"]
