import logging
from dataclasses import dataclass, field
from datetime import datetime

from web3 import Web3

from errors import TransactionFailedError

logger = logging.getLogger(__name__)

DEFAULT_TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'
RECORD_FIELDS = ('patientName', 'diagnosis', 'treatment', 'timestamp')


@dataclass(frozen=True)
class Record:
    id: int
    patient_name: str
    diagnosis: str
    treatment: str
    created_at: int
    timestamp: str
    patient_address: str


@dataclass(frozen=True)
class RecordPage:
    """Records fetched for one address; address is None for an empty query."""
    address: str = None
    count: int = 0
    records: tuple = field(default_factory=tuple)

    def __len__(self):
        return len(self.records)

    def to_dict(self):
        return {
            'address': self.address,
            'count': self.count,
            'records': [
                {
                    'id': r.id,
                    'patientName': r.patient_name,
                    'diagnosis': r.diagnosis,
                    'treatment': r.treatment,
                    'timestamp': r.created_at,
                    'date': r.timestamp,
                }
                for r in self.records
            ],
        }


EMPTY_PAGE = RecordPage()


def is_valid_address(value):
    """Hex address check; mixed-case input must carry a valid checksum."""
    if not isinstance(value, str):
        return False
    value = value.strip()
    digits = value[2:] if value[:2].lower() == '0x' else value
    if not Web3.is_address('0x' + digits):
        return False
    if digits == digits.lower() or digits == digits.upper():
        return True
    return Web3.is_checksum_address('0x' + digits)


def format_timestamp(seconds, fmt=DEFAULT_TIMESTAMP_FORMAT):
    """Converts contract epoch seconds to a local time display string."""
    return datetime.fromtimestamp(int(seconds)).strftime(fmt)


def _raw_fields(raw):
    # web3 may decode structs as tuples or as attribute dicts
    if hasattr(raw, 'keys'):
        return tuple(raw[name] for name in RECORD_FIELDS)
    return tuple(raw)


def to_record(index, raw, address, fmt=DEFAULT_TIMESTAMP_FORMAT):
    patient_name, diagnosis, treatment, created_at = _raw_fields(raw)
    return Record(
        id=index,
        patient_name=patient_name,
        diagnosis=diagnosis,
        treatment=treatment,
        created_at=int(created_at),
        timestamp=format_timestamp(created_at, fmt),
        patient_address=address,
    )


def query_records(session, address, fmt=DEFAULT_TIMESTAMP_FORMAT):
    """
    Fetches every record stored for a patient address.

    A malformed address short-circuits to an empty page without touching the
    provider. Contract errors propagate to the caller.
    """
    if not is_valid_address(address):
        return EMPTY_PAGE

    checksum_address = Web3.to_checksum_address(address.strip())
    functions = session.contract.functions
    count = int(functions.getRecordCountByAddress(checksum_address).call())
    raw_records = functions.getRecordsByAddress(checksum_address).call()
    logger.info(f"Found {count} records for {checksum_address}")

    records = tuple(
        to_record(index, raw, checksum_address, fmt)
        for index, raw in enumerate(raw_records)
    )
    return RecordPage(address=checksum_address, count=count, records=records)


def add_record(session, patient_address, patient_name, diagnosis, treatment, timeout=120):
    """Sends addRecord from the active account and waits for it to be mined."""
    checksum_address = Web3.to_checksum_address(patient_address.strip())
    tx_hash = session.contract.functions.addRecord(
        checksum_address, patient_name, diagnosis, treatment
    ).transact({'from': session.account})
    tx_hex = Web3.to_hex(tx_hash)
    logger.info(f"addRecord transaction sent: {tx_hex}")

    tx_receipt = session.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    if tx_receipt['status'] == 0:
        raise TransactionFailedError(tx_hex)
    logger.info(f"addRecord confirmed in block {tx_receipt['blockNumber']}")
    return tx_receipt
