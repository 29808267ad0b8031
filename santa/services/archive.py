from __future__ import annotations

import json
from pathlib import Path
from typing import Union

import yaml
from loguru import logger

from santa.core.errors import EncodingFailure, IOFailure
from santa.services.allocation import Allocation, ArchiveEnvelope, decode_allocation

FORMAT_YAML = "yaml"
FORMAT_JSON = "json"
OUTPUT_FORMATS = (FORMAT_YAML, FORMAT_JSON)


def dumps_envelope(envelope: ArchiveEnvelope, file_type: str = FORMAT_YAML) -> str:
    data = envelope.to_dict()
    try:
        if file_type == FORMAT_YAML:
            return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
        if file_type == FORMAT_JSON:
            return json.dumps(data, indent="\t", ensure_ascii=False) + "\n"
    except (yaml.YAMLError, TypeError, ValueError) as exc:
        raise EncodingFailure(f"Unable to marshal archive: {exc}") from exc
    raise EncodingFailure(f"Invalid output file type: {file_type}")


def write_envelope(
    envelope: ArchiveEnvelope,
    path: Union[str, Path],
    file_type: str = FORMAT_YAML,
) -> None:
    text = dumps_envelope(envelope, file_type)
    try:
        Path(path).write_text(text, encoding="utf-8")
    except OSError as exc:
        raise IOFailure(f"Unable to write to file {path}: {exc}") from exc
    logger.bind(path=str(path), file_type=file_type).info("Allocation archive written")


def read_envelope(path: Union[str, Path]) -> ArchiveEnvelope:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise IOFailure(f"Unable to read archive file {path}: {exc}") from exc

    try:
        if text.lstrip().startswith("{"):
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise EncodingFailure(f"Unable to parse archive file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise EncodingFailure(f"Archive file {path} does not contain a record.")
    return ArchiveEnvelope.from_dict(data)


def reveal(envelope: ArchiveEnvelope) -> Allocation:
    return decode_allocation(envelope.allocation)
