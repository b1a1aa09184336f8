"""
Ledger test fixtures.

The gateway talks to an EVM node through web3. All node calls MUST be
mocked in tests - never hit a real RPC endpoint.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from wager_client.ledger import LedgerConfig, LedgerGateway, SubmissionHandle

CONTRACT_ADDRESS = "0x" + "ab" * 20
SIGNER_ADDRESS = "0x" + "12" * 20
TX_HASH_BYTES = b"\xde\xad" * 16
TX_HASH = "0x" + "dead" * 16
CHAIN_ID = 2810


class AwaitableValue:
    """Stands in for web3's awaitable properties such as eth.chain_id."""

    def __init__(self, value):
        self.value = value

    def __await__(self):
        if False:
            yield
        return self.value


@pytest.fixture
def mock_contract():
    """Mock contract with the four functions the gateway uses."""
    contract = MagicMock()

    for name in ("createBet", "placeBet", "endEpoch"):
        call = MagicMock()
        call.build_transaction = AsyncMock(return_value={"to": CONTRACT_ADDRESS, "gas": 100000})
        getattr(contract.functions, name).return_value = call

    get_all = MagicMock()
    get_all.call = AsyncMock(return_value=[
        (0, "ETH > 5000", 5000, 0, 0, False),
        (1, "ETH > 6000", 6000, 5 * 10 ** 17, 10 ** 17, True),
    ])
    contract.functions.getAllBets.return_value = get_all
    return contract


@pytest.fixture
def mock_web3(mock_contract):
    """Mock AsyncWeb3 connection."""
    web3 = MagicMock()
    web3.eth.contract.return_value = mock_contract
    web3.eth.get_transaction_count = AsyncMock(return_value=5)
    web3.eth.chain_id = AwaitableValue(CHAIN_ID)
    web3.eth.send_raw_transaction = AsyncMock(return_value=TX_HASH_BYTES)
    web3.eth.get_transaction_receipt = AsyncMock(return_value={
        "status": 1,
        "blockNumber": 123,
        "gasUsed": 21000,
    })
    return web3


@pytest.fixture
def mock_account():
    """Mock LocalAccount that signs anything."""
    account = MagicMock()
    account.address = SIGNER_ADDRESS
    signed = MagicMock()
    signed.raw_transaction = b"\x02signed"
    account.sign_transaction.return_value = signed
    return account


@pytest.fixture
def gateway(mock_web3, mock_account):
    """LedgerGateway with mocked web3 and account."""
    return LedgerGateway(
        mock_web3,
        CONTRACT_ADDRESS,
        account=mock_account,
        config=LedgerConfig(explorer_tx_url="https://explorer.test/tx/{tx_hash}"),
    )


@pytest.fixture
def handle():
    return SubmissionHandle(tx_hash=TX_HASH, action="placeBet", bet_id=0)
