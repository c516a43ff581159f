"""
YAML files for sheet interchange.

A file is a mapping of sheet name to a list of row mappings, the same shape
``export_sheets`` produces and ``merge_sheets`` consumes.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
import yaml.constructor

logger = logging.getLogger(__name__)


class InterchangeFileError(Exception):
    pass


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate keys within a row."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    None, None, f"found duplicate key '{key}'", key_node.start_mark
                )
            seen.add(key)
        return super().construct_mapping(node, deep)


class _LiteralDumper(yaml.SafeDumper):
    pass


def _str_representer(dumper: yaml.SafeDumper, data: str):
    # Multi-line bodies and notes stay readable as block literals
    style = "|" if "\n" in data else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style=style)


_LiteralDumper.add_representer(str, _str_representer)


def dump_sheets(sheets: dict[str, list[dict[str, Any]]]) -> str:
    return yaml.dump(
        sheets,
        Dumper=_LiteralDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=10**9,
    )


def load_sheets(text: str) -> dict[str, list[dict[str, Any]]]:
    try:
        data = yaml.load(text, Loader=UniqueKeyLoader) or {}
    except yaml.YAMLError as e:
        raise InterchangeFileError(f"Invalid interchange file: {e}") from e
    if not isinstance(data, dict):
        raise InterchangeFileError("Interchange file must map sheet names to rows")
    return data


def write_sheets(path: Path, sheets: dict[str, list[dict[str, Any]]]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_sheets(sheets), encoding="utf-8")
    logger.info(f"Wrote {sum(len(rows) for rows in sheets.values())} rows to {path}")
    return path


def read_sheets(path: Path) -> dict[str, list[dict[str, Any]]]:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise InterchangeFileError(f"Could not read {path}: {e}") from e
    return load_sheets(text)
