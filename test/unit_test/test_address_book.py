"""
Test address book loading and lookup
"""

import json
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from evm_multinode.modules import AddressBook, DefaultAddressBook, UNKNOWN_NAME

USDT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"


def test_lookup_is_case_insensitive():
    print("Testing DefaultAddressBook lookup...")

    book = DefaultAddressBook({USDT: "USDT"})
    assert book.get_name(USDT.lower()) == "USDT"
    assert book.get_name(USDT.upper().replace("0X", "0x")) == "USDT"
    assert book.get_name("0x" + "00" * 20) == UNKNOWN_NAME
    assert book.display(USDT.lower()) == f"{USDT} - (USDT)"
    assert isinstance(book, AddressBook)

    print("  DefaultAddressBook lookup: PASSED")


def test_load_mapping_file(tmp_path):
    path = tmp_path / "addresses.json"
    path.write_text(json.dumps({USDT: "USDT", "0x" + "11" * 20: "treasury"}), encoding="utf-8")

    book = DefaultAddressBook.from_json_file(path)
    assert len(book) == 2
    assert book.get_name("0x" + "11" * 20) == "treasury"


def test_load_token_list_file(tmp_path):
    path = tmp_path / "tokens.json"
    path.write_text(json.dumps([
        {"address": USDT, "symbol": "USDT", "decimals": 6},
        {"address": "0x" + "22" * 20},
    ]), encoding="utf-8")

    book = DefaultAddressBook()
    assert book.load_json_file(path) == 1
    assert book.get_name(USDT) == "USDT"


def test_bad_file_is_ignored(tmp_path):
    """Test unreadable files are logged and ignored"""
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    book = DefaultAddressBook({USDT: "USDT"})
    assert book.load_json_file(broken) == 0
    assert book.load_json_file(tmp_path / "missing.json") == 0
    assert book.get_name(USDT) == "USDT"


def test_from_home(tmp_path, monkeypatch):
    (tmp_path / "addresses.json").write_text(json.dumps({USDT: "USDT"}), encoding="utf-8")
    monkeypatch.setattr(Path, "home", lambda: tmp_path)

    assert DefaultAddressBook.from_home().get_name(USDT) == "USDT"
