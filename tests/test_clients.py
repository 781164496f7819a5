import asyncio
import threading

import pytest

from contract_watch.api import ExplorerClient, SupplyClient, build_source, page_fingerprint
from contract_watch.api.explorer import decode_body
from contract_watch.config import Config, MonitorMode
from contract_watch.errors import ErrorKind, FetchError, UpstreamNotReadyError
from contract_watch.models import ObservationKind


# =============================================================================
# Explorer
# =============================================================================

class ScriptedExplorer(ExplorerClient):
    """ExplorerClient with the HTTP call replaced."""

    def __init__(self, config, status, body="", error=None):
        super().__init__(config)
        self.status = status
        self.body = body
        self.error = error
        self.requested = []

    async def _get(self, url):
        self.requested.append(url)
        if self.error is not None:
            raise self.error
        return self.status, self.body


def test_page_fingerprint_only_depends_on_prefix():
    head = "a" * 2000

    assert page_fingerprint(head + "tail one", 2000) == page_fingerprint(head + "tail two", 2000)
    assert page_fingerprint("b" + head, 2000) != page_fingerprint(head, 2000)
    assert len(page_fingerprint("", 2000)) == 64


def test_explorer_fetch_builds_fingerprint_observation(page_config):
    client = ScriptedExplorer(page_config, 200, "<html>Deposit 5000 WETH</html>")

    observation = asyncio.run(client.fetch())

    assert client.requested == [page_config.page_url]
    assert observation.kind is ObservationKind.CONTENT_FINGERPRINT
    assert observation.value == page_fingerprint(observation.content, 2000)
    assert [a.token for a in observation.extracted_amounts] == ["5000 WETH"]
    assert observation.source_url == page_config.page_url


def test_explorer_non_200_is_fetch_error(page_config):
    client = ScriptedExplorer(page_config, 500, "oops")

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(client.fetch())
    assert str(excinfo.value) == "HTTP 500"
    assert excinfo.value.status == 500


@pytest.mark.parametrize("status", [202, 425])
def test_explorer_not_ready_statuses(page_config, status):
    client = ScriptedExplorer(page_config, status)

    with pytest.raises(UpstreamNotReadyError) as excinfo:
        asyncio.run(client.fetch())
    assert excinfo.value.kind is ErrorKind.UPSTREAM_NOT_READY


def test_explorer_transport_errors_propagate_as_fetch_errors(page_config):
    client = ScriptedExplorer(page_config, 0, error=FetchError("Request failed: refused"))

    with pytest.raises(FetchError):
        asyncio.run(client.fetch())


class FakeResponse:
    def __init__(self, status, body, charset):
        self.status = status
        self.charset = charset
        self._body = body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass

    async def read(self):
        return self._body


class FakeSession:
    """Stands in for aiohttp.ClientSession with one canned response."""

    def __init__(self, status, body, charset="utf-8"):
        self.response = FakeResponse(status, body, charset)

    def get(self, url):
        return self.response

    async def close(self):
        pass


@pytest.mark.parametrize("charset", ["utf-8", "x-no-such-charset", None])
def test_explorer_tolerates_undecodable_bodies(page_config, charset):
    client = ExplorerClient(page_config)
    client._session = FakeSession(200, b"<html>\xff\xfe Deposit 5000 WETH</html>", charset)

    observation = asyncio.run(client.fetch())

    assert observation.content.startswith("<html>\ufffd\ufffd")
    assert observation.value == page_fingerprint(observation.content, 2000)
    assert [a.token for a in observation.extracted_amounts] == ["5000 WETH"]


def test_decode_body_uses_declared_charset():
    assert decode_body("café".encode("latin-1"), "latin-1") == "café"
    assert decode_body(b"ok", "bogus") == "ok"


def test_page_url_joins_explorer_and_address():
    config = Config(explorer_url="https://plasmascan.to/", contract_address="0x" + "1" * 40)

    assert config.page_url == "https://plasmascan.to/address/0x" + "1" * 40


# =============================================================================
# RPC supply
# =============================================================================

class FakeCall:
    def __init__(self, value=None, error=None):
        self.value = value
        self.error = error

    def call(self):
        if self.error is not None:
            raise self.error
        return self.value


class FakeFunctions:
    def __init__(self, supply, decimals=18, symbol="weETH", error=None):
        self._supply = supply
        self._decimals = decimals
        self._symbol = symbol
        self._error = error

    def totalSupply(self):
        return FakeCall(self._supply, self._error)

    def decimals(self):
        if self._decimals is None:
            return FakeCall(error=ValueError("execution reverted"))
        return FakeCall(self._decimals)

    def symbol(self):
        return FakeCall(self._symbol)


class FakeContract:
    def __init__(self, functions):
        self.functions = functions


class FakeEth:
    def __init__(self, functions, syncing=False):
        self.syncing = syncing
        self._functions = functions
        self.contract_args = None

    def contract(self, address, abi):
        self.contract_args = (address, abi)
        return FakeContract(self._functions)


class FakeWeb3:
    def __init__(self, functions, syncing=False):
        self.eth = FakeEth(functions, syncing)


def test_supply_client_reads_exact_supply(supply_config):
    supply = 2 ** 80 + 1
    w3 = FakeWeb3(FakeFunctions(supply))

    observation = asyncio.run(SupplyClient(supply_config, w3=w3).fetch())

    assert observation.kind is ObservationKind.NUMERIC_SUPPLY
    assert observation.value == supply
    assert observation.comparable == str(supply)
    assert observation.decimals == 18
    assert observation.symbol == "weETH"
    assert w3.eth.contract_args[0].lower() == supply_config.contract_address.lower()


def test_supply_client_tolerates_missing_decimals(supply_config):
    w3 = FakeWeb3(FakeFunctions(100, decimals=None))

    observation = asyncio.run(SupplyClient(supply_config, w3=w3).fetch())

    assert observation.decimals is None
    assert observation.display_value == "100 weETH"


def test_supply_client_call_failure_is_fetch_error(supply_config):
    w3 = FakeWeb3(FakeFunctions(None, error=ValueError("execution reverted")))

    with pytest.raises(FetchError):
        asyncio.run(SupplyClient(supply_config, w3=w3).fetch())


def test_supply_client_syncing_node_is_not_ready(supply_config):
    w3 = FakeWeb3(FakeFunctions(100), syncing={"currentBlock": 1, "highestBlock": 10})

    with pytest.raises(UpstreamNotReadyError):
        asyncio.run(SupplyClient(supply_config, w3=w3).fetch())


def test_supply_client_calls_run_off_the_event_loop(supply_config):
    threads = []

    class RecordingFunctions(FakeFunctions):
        def totalSupply(self):
            threads.append(threading.get_ident())
            return super().totalSupply()

    async def fetch_and_report_loop_thread():
        client = SupplyClient(supply_config, w3=FakeWeb3(RecordingFunctions(100)))
        observation = await client.fetch()
        return observation, threading.get_ident()

    observation, loop_thread = asyncio.run(fetch_and_report_loop_thread())

    assert observation.value == 100
    assert threads and threads[0] != loop_thread


def test_supply_client_read_is_synchronous(supply_config):
    observation = SupplyClient(supply_config, w3=FakeWeb3(FakeFunctions(7))).read()

    assert observation.comparable == "7"


def test_build_source_by_mode(page_config):
    assert isinstance(build_source(page_config), ExplorerClient)

    page_config.mode = MonitorMode.SUPPLY
    assert isinstance(build_source(page_config), SupplyClient)
