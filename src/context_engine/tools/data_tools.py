"""
Data tools: format conversion and validation.

JSON, YAML and CSV are handled locally; any other format pair is delegated to
the model collaborator.
"""

import csv
import io
import json
from typing import Any, Dict, List, Optional

import yaml

from .base import BaseTool
from .exceptions import ToolExecutionError
from .types import Tool, ToolContext, ParameterSpec, ParamType, ToolCategory
from ..utils.error_handling import handle_tool_execution, ValidationError


LOCAL_FORMATS = ("json", "yaml", "csv")

FORMAT_ALIASES = {"yml": "yaml"}


def normalize_format(fmt: Optional[str]) -> str:
    fmt = (fmt or "").strip().lower()
    return FORMAT_ALIASES.get(fmt, fmt)


@handle_tool_execution("parse_data")
def parse_data(data: str, fmt: str) -> Any:
    """Parse ``data`` written in ``fmt``.

    Raises:
        ValidationError: If the text is not valid in that format
    """
    if fmt == "json":
        return json.loads(data)

    if fmt == "yaml":
        try:
            return yaml.safe_load(data)
        except yaml.YAMLError as e:
            raise ValueError(f"invalid YAML: {e}") from e

    if fmt == "csv":
        reader = csv.DictReader(io.StringIO(data.strip()))
        if not reader.fieldnames:
            raise ValueError("CSV data has no header row")
        return [dict(row) for row in reader]

    raise ValueError(f"unsupported format: {fmt}")


@handle_tool_execution("serialize_data")
def serialize_data(value: Any, fmt: str) -> str:
    """Render a parsed value in ``fmt``."""
    if fmt == "json":
        return json.dumps(value, indent=2, ensure_ascii=False)

    if fmt == "yaml":
        return yaml.safe_dump(value, sort_keys=False, allow_unicode=True)

    if fmt == "csv":
        rows = value if isinstance(value, list) else [value]
        if not rows or not all(isinstance(row, dict) for row in rows):
            raise ValueError("only a list of flat objects can be written as CSV")

        fieldnames: List[str] = []
        for row in rows:
            for key in row:
                if key not in fieldnames:
                    fieldnames.append(key)
            if any(isinstance(v, (dict, list)) for v in row.values()):
                raise ValueError("nested values cannot be written as CSV")

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=fieldnames, lineterminator="\n")
        writer.writeheader()
        writer.writerows(rows)
        return buffer.getvalue()

    raise ValueError(f"unsupported format: {fmt}")


class DataTransformerTool(BaseTool):
    """Convert ``data`` between formats."""

    def get_schema(self) -> Tool:
        return Tool(
            name="data_transformer",
            description="Transform data between formats",
            category=ToolCategory.DATA.value,
            input_schema=[
                ParameterSpec("data", ParamType.STRING, True, "Data to convert"),
                ParameterSpec("from", ParamType.STRING, True, "Source format, e.g. json, yaml, csv"),
                ParameterSpec("to", ParamType.STRING, True, "Target format, e.g. json, yaml, csv"),
            ],
        )

    def run(self, parameters: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
        data = self._require_string(parameters, "data")
        source = normalize_format(parameters["from"])
        target = normalize_format(parameters["to"])

        if source in LOCAL_FORMATS and target in LOCAL_FORMATS:
            result = serialize_data(parse_data(data, source), target)
            return {"from": source, "to": target, "result": result, "engine": "local"}

        prompt = (
            f"Transform this {source} data to {target} format. "
            f"Return only the transformed data.\n{data}"
        )
        result = self._generate(context, prompt)
        return {"from": source, "to": target, "result": result, "engine": "model"}


class DataValidatorTool(BaseTool):
    """Parse ``data`` as ``format`` and check for required fields."""

    def get_schema(self) -> Tool:
        return Tool(
            name="data_validator",
            description="Validate data integrity",
            category=ToolCategory.DATA.value,
            input_schema=[
                ParameterSpec("data", ParamType.STRING, True, "Data to validate"),
                ParameterSpec("format", ParamType.STRING, False, "json (default), yaml or csv"),
                ParameterSpec("required_fields", ParamType.ARRAY, False,
                              "Fields every record must carry"),
            ],
        )

    def run(self, parameters: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
        data = self._require_string(parameters, "data")
        fmt = normalize_format(parameters.get("format") or "json")
        required_fields = [str(f) for f in parameters.get("required_fields") or []]

        if fmt not in LOCAL_FORMATS:
            raise ToolExecutionError(
                f"Unsupported format '{fmt}'; expected one of {', '.join(LOCAL_FORMATS)}",
                self.get_name()
            )

        try:
            parsed = parse_data(data, fmt)
        except ValidationError as e:
            return {"valid": False, "format": fmt, "record_count": 0, "errors": [e.message]}

        records = parsed if isinstance(parsed, list) else [parsed]
        errors: List[str] = []
        for index, record in enumerate(records):
            if not required_fields:
                break
            if not isinstance(record, dict):
                errors.append(f"record {index}: expected an object, got {type(record).__name__}")
                continue
            for name in required_fields:
                if record.get(name) in (None, ""):
                    errors.append(f"record {index}: missing required field '{name}'")

        return {
            "valid": not errors,
            "format": fmt,
            "record_count": len(records),
            "errors": errors,
        }
