"""
Address naming

Maps addresses to display names for analysis output.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol, Union, runtime_checkable

from web3 import Web3

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "unknown"


@runtime_checkable
class AddressBook(Protocol):
    def get_name(self, address: str) -> str:
        ...


class DefaultAddressBook:
    """
    In-memory, case-insensitive address book

    Usage:
        book = DefaultAddressBook({"0xdAC17F958D2ee523a2206206994597C13D831ec7": "USDT"})
        book.get_name("0xdac17f958d2ee523a2206206994597c13d831ec7")  # "USDT"
    """

    def __init__(self, names: Optional[Dict[str, str]] = None):
        self._names: Dict[str, str] = {}
        if names:
            self.register_many(names)

    @staticmethod
    def _key(address: str) -> str:
        return address.lower()

    def register(self, address: str, name: str) -> None:
        self._names[self._key(address)] = name

    def register_many(self, names: Dict[str, str]) -> None:
        for address, name in names.items():
            self.register(address, name)

    def get_name(self, address: str) -> str:
        return self._names.get(self._key(address), UNKNOWN_NAME)

    def load_json_file(self, path: Union[str, Path]) -> int:
        """
        Register names from a JSON file; problems are logged and ignored.

        Accepts either ``{address: name}`` or a token list
        ``[{"address": ..., "symbol": ...}]``.

        Returns:
            Number of names registered
        """
        try:
            content = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Reading addresses from {path} failed: {e}. Ignored.")
            return 0

        before = len(self._names)
        if isinstance(content, dict):
            for address, name in content.items():
                if isinstance(name, str):
                    self.register(address, name)
        elif isinstance(content, list):
            for entry in content:
                if isinstance(entry, dict) and entry.get("address") and entry.get("symbol"):
                    self.register(entry["address"], entry["symbol"])
        else:
            logger.warning(f"Unexpected address file format in {path}. Ignored.")
        return len(self._names) - before

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "DefaultAddressBook":
        book = cls()
        book.load_json_file(path)
        return book

    @classmethod
    def from_home(cls) -> "DefaultAddressBook":
        """Address book seeded from ``~/addresses.json`` when it exists"""
        book = cls()
        home_file = Path.home() / "addresses.json"
        if home_file.exists():
            book.load_json_file(home_file)
        return book

    def display(self, address: str) -> str:
        """``<checksum> - (<name>)``"""
        return f"{Web3.to_checksum_address(address)} - ({self.get_name(address)})"

    def __len__(self) -> int:
        return len(self._names)
