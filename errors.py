class MedicalRecordsError(Exception):
    """Base class for errors raised by the records browser."""


class ProviderError(MedicalRecordsError):
    pass


class NoProviderError(ProviderError):
    """No reachable provider is configured."""


class AuthorizationDeniedError(ProviderError):
    """The provider refused to expose any account."""


class ContractNotDeployedError(MedicalRecordsError):
    """The contract has no address on the connected network."""


class TransactionFailedError(MedicalRecordsError):
    """A transaction was mined but reverted."""

    def __init__(self, tx_hash, message=None):
        self.tx_hash = tx_hash
        super().__init__(message or f"Transaction {tx_hash} reverted")
