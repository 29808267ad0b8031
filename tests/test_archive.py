import json

import pytest
import yaml

from santa.core.errors import EncodingFailure, IOFailure
from santa.services.allocation import Allocation, ArchiveEnvelope
from santa.services.allocator import Allocator
from santa.services.archive import dumps_envelope, read_envelope, reveal, write_envelope

NAMES = ["sam", "tom", "jim", "grace", "bill"]
PASSWORDS = ["p1", "p2", "p3", "p4", "p5"]


def create_envelope() -> tuple[Allocation, ArchiveEnvelope]:
    allocator = Allocator(NAMES, PASSWORDS, name="Friendmas 2024")
    allocation = allocator.allocate()
    return allocation, allocator.envelope(allocation)


def test_yaml_output(tmp_path):
    allocation, envelope = create_envelope()
    path = tmp_path / "allocation.yaml"
    write_envelope(envelope, path, "yaml")

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert data["allocation_name"] == "Friendmas 2024"
    assert data["allocated_passwords"] == allocation.gift_sheet()
    assert data["allocation"] == envelope.allocation
    assert isinstance(data["created"], str)


def test_json_output_is_tab_indented(tmp_path):
    allocation, envelope = create_envelope()
    path = tmp_path / "allocation.json"
    write_envelope(envelope, path, "json")

    text = path.read_text(encoding="utf-8")
    assert '\n\t"allocation_name": "Friendmas 2024"' in text
    assert json.loads(text)["allocated_passwords"] == allocation.gift_sheet()


@pytest.mark.parametrize("file_type", ["yaml", "json"])
def test_read_and_reveal(tmp_path, file_type):
    allocation, envelope = create_envelope()
    path = tmp_path / f"allocation.{file_type}"
    write_envelope(envelope, path, file_type)

    loaded = read_envelope(path)
    assert loaded == envelope
    revealed = reveal(loaded)
    assert revealed.name_to_name() == allocation.name_to_name()
    assert revealed.alias_book() == allocation.alias_book()


def test_invalid_file_type():
    _, envelope = create_envelope()
    with pytest.raises(EncodingFailure):
        dumps_envelope(envelope, "toml")


def test_unwritable_output(tmp_path):
    _, envelope = create_envelope()
    with pytest.raises(IOFailure):
        write_envelope(envelope, tmp_path / "missing" / "allocation.yaml")


def test_unreadable_archive(tmp_path):
    with pytest.raises(IOFailure):
        read_envelope(tmp_path / "missing.yaml")


def test_malformed_archive(tmp_path):
    path = tmp_path / "allocation.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(EncodingFailure):
        read_envelope(path)

    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(EncodingFailure):
        read_envelope(path)
