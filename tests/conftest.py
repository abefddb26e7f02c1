from unittest.mock import MagicMock

import pytest

from app import create_app
from config import TestingConfig
from contract import Session

OWNER = '0x90F8bf6A479f320ead074411a4B0e7944Ea8c9C1'
VISITOR = '0xFFcf8FDEE72ac11b5c542428B35EEF5769C409f0'
PATIENT = '0x22d491Bde2303f2f43325b2108D26f1eAbA1e32b'
OTHER_PATIENT = '0xE11BA2b4D45Eaed5996Cd0823791E0C93114882d'
EXAMPLE_ADDRESS = '0x742d35Cc6634C0532925a3b844Bc454e4438f44e'
CONTRACT_ADDRESS = '0x5b1869D9A4C187F2EAa108f3062412ecf0526b24'

TX_HASH = b'\x12' * 32


def raw_record(name, diagnosis, treatment, timestamp):
    return (name, diagnosis, treatment, timestamp)


def make_contract(records=None):
    """Contract double; records maps checksum address -> list of raw record tuples."""
    records = records if records is not None else {}
    contract = MagicMock()
    contract.address = CONTRACT_ADDRESS
    functions = contract.functions

    functions.owner.return_value.call.return_value = OWNER

    def count_by_address(address):
        call = MagicMock()
        call.call.return_value = len(records.get(address, []))
        return call

    def records_by_address(address):
        call = MagicMock()
        call.call.side_effect = lambda *args, **kwargs: list(records.get(address, []))
        return call

    functions.getRecordCountByAddress.side_effect = count_by_address
    functions.getRecordsByAddress.side_effect = records_by_address
    functions.addRecord.return_value.transact.return_value = TX_HASH
    return contract


def make_session(contract=None, account=OWNER, receipt_status=1):
    w3 = MagicMock()
    w3.eth.wait_for_transaction_receipt.return_value = {'status': receipt_status, 'blockNumber': 7}
    return Session(
        w3=w3,
        accounts=[account],
        contract=contract if contract is not None else make_contract(),
        owner=OWNER,
        is_owner=account.lower() == OWNER.lower(),
        network_id='5777',
    )


@pytest.fixture
def records():
    return {
        PATIENT: [
            raw_record('Alice Smith', 'Flu', 'Rest and fluids', 1700000000),
            raw_record('Alice Smith', 'Sprained ankle', 'Ice', 1700086400),
        ],
    }


@pytest.fixture
def contract(records):
    return make_contract(records)


@pytest.fixture
def owner_session(contract):
    return make_session(contract)


@pytest.fixture
def visitor_session(contract):
    return make_session(contract, account=VISITOR)


@pytest.fixture
def app(owner_session):
    return create_app(TestingConfig, chain_session=owner_session)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def visitor_client(visitor_session):
    return create_app(TestingConfig, chain_session=visitor_session).test_client()
