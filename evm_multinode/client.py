"""
ChainClient - entry point for one chain

Owns the providers for a chain and the reader, broadcaster and gas price
strategy built on them. Callers construct as many clients as they need;
nothing is shared through module globals.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Union, TYPE_CHECKING

from .chains import ChainConfig, get_chain
from .config import config as global_config
from .errors import AbiFetchError, ConfigurationError
from .infra import (
    AbiFetcher,
    Broadcaster,
    GasPriceStrategy,
    LocalKeySigner,
    Provider,
    RedundantReader,
    Signer,
    create_providers,
)

if TYPE_CHECKING:
    from .modules.abi import ContractAbi
    from .modules.account import Account
    from .modules.address_book import AddressBook
    from .modules.analyzer import TxAnalyzer
    from .modules.composer import TxComposer
    from .modules.monitor import TxMonitor


class ChainClient:
    """
    Client for one EVM chain

    Provides:
    - reader: first-success reads across all providers
    - broadcaster: send-to-all transaction submission
    - composer: unsigned transaction assembly
    - monitor: wait for transactions to reach a terminal state
    - analyzer: decode transactions and logs
    - account(signer): sending operations for a signer

    Usage:
        with ChainClient("ethereum") as client:
            balance = client.reader.get_balance("0x...")

            account = client.account(client.local_signer("0x..."))
            outcome = account.send_eth(0.1, "0x...")
            info = client.monitor.blocking_wait(outcome.tx_hash)

        # Custom endpoints
        client = ChainClient("bsc", providers={"a": "https://...", "b": "https://..."})
    """

    def __init__(
        self,
        chain: Union[str, ChainConfig],
        providers: Optional[Union[Dict[str, Union[str, Provider]], Iterable[Provider]]] = None,
        rpc_timeout: Optional[float] = None,
        gas_price: Optional[GasPriceStrategy] = None,
        abi_fetcher: Optional[AbiFetcher] = None,
        address_book: Optional["AddressBook"] = None,
    ):
        """
        Initialize ChainClient

        Args:
            chain: Chain name or ChainConfig record
            providers: Provider name -> URL (or Provider), or Providers;
                defaults to the chain's configured nodes
            rpc_timeout: Per-call timeout, defaults to config.rpc.timeout_seconds
            gas_price: Gas price strategy override
            abi_fetcher: ABI source override
            address_book: Display names for analysis output
        """
        self._chain = get_chain(chain) if isinstance(chain, str) else chain
        self._timeout = rpc_timeout if rpc_timeout is not None else global_config.rpc.timeout_seconds
        self._providers = self._build_providers(providers)

        self._reader = RedundantReader(self._providers, timeout=self._timeout)
        self._broadcaster = Broadcaster(self._providers, timeout=self._timeout)
        self._gas_price = gas_price if gas_price is not None else self._chain.make_gas_price(self._reader)
        self._abi_fetcher = abi_fetcher if abi_fetcher is not None else self._chain.make_abi_fetcher()
        self._address_book = address_book

        # Lazy-loaded modules
        self._composer: Optional["TxComposer"] = None
        self._monitor: Optional["TxMonitor"] = None
        self._analyzer: Optional["TxAnalyzer"] = None

    def _build_providers(self, providers) -> Dict[str, Provider]:
        if providers is None:
            return create_providers(self._chain.resolved_nodes(), timeout=self._timeout)
        if isinstance(providers, dict):
            built: Dict[str, Provider] = {}
            for name, value in providers.items():
                if isinstance(value, str):
                    built[name] = Provider(name, value, timeout=self._timeout)
                else:
                    built[name] = value
            return built
        built = {}
        for provider in providers:
            if provider.name in built:
                raise ConfigurationError.invalid("providers", f"duplicate provider name {provider.name!r}")
            built[provider.name] = provider
        return built

    @property
    def chain(self) -> ChainConfig:
        return self._chain

    @property
    def providers(self) -> Dict[str, Provider]:
        return dict(self._providers)

    @property
    def reader(self) -> RedundantReader:
        """Access to the redundant reader"""
        return self._reader

    @property
    def broadcaster(self) -> Broadcaster:
        return self._broadcaster

    @property
    def gas_price(self) -> GasPriceStrategy:
        return self._gas_price

    @property
    def abi_fetcher(self) -> Optional[AbiFetcher]:
        return self._abi_fetcher

    @property
    def composer(self) -> "TxComposer":
        """
        Transaction composer

        Provides:
        - build(sender, to, value, data, ...): UnsignedTransaction
        - build_transfer / build_contract_call / pack_call
        """
        if self._composer is None:
            from .modules.composer import TxComposer
            self._composer = TxComposer(self._reader, self._gas_price, self._abi_fetcher)
        return self._composer

    @property
    def monitor(self) -> "TxMonitor":
        """
        Transaction monitor

        Provides:
        - wait_channel(hash) / blocking_wait(hash)
        - wait_channels(*hashes) / blocking_wait_many(*hashes)
        """
        if self._monitor is None:
            from .modules.monitor import TxMonitor
            self._monitor = TxMonitor(self._reader)
        return self._monitor

    @property
    def analyzer(self) -> "TxAnalyzer":
        """
        Transaction analyzer

        Provides:
        - analyze(hash): fetch and decode
        - analyze_offline(tx_info, abi, is_contract)
        """
        if self._analyzer is None:
            from .modules.analyzer import TxAnalyzer
            from .modules.address_book import DefaultAddressBook
            book = self._address_book if self._address_book is not None else DefaultAddressBook.from_home()
            self._analyzer = TxAnalyzer(self._reader, self._abi_fetcher, book)
        return self._analyzer

    def account(self, signer: Signer) -> "Account":
        from .modules.account import Account
        return Account(signer, self)

    def local_signer(self, private_key: Optional[str] = None) -> LocalKeySigner:
        """Local key signer bound to this chain's replay-protection id"""
        from .infra.signer import create_local_signer
        return create_local_signer(private_key, chain_id=self._chain.replay_protection_id)

    def recommended_gas_price(self) -> float:
        """Recommended gas price in gwei"""
        return self._gas_price.recommended_gwei()

    def get_abi(self, address: str) -> "ContractAbi":
        if self._abi_fetcher is None:
            raise AbiFetchError(f"no ABI source configured for {self._chain.name}", address=address)
        return self._abi_fetcher.fetch_abi(address)

    def read_contract(self, address: str, method: str, *args: Any, block: Optional[int] = None) -> List[Any]:
        """Call a constant method using the contract's fetched ABI"""
        return self._reader.read_contract(self.get_abi(address), address, method, *args, block=block)

    def close(self):
        """Close client connections and release resources"""
        for provider in self._providers.values():
            provider.close()
        close_fetcher = getattr(self._abi_fetcher, "close", None)
        if close_fetcher is not None:
            close_fetcher()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"ChainClient(chain={self._chain.name}, providers={sorted(self._providers)})"
