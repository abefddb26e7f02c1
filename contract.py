import json
import logging
from dataclasses import dataclass

from web3 import Web3

from errors import ContractNotDeployedError
from provider import detect_provider

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Provider connection, accounts and contract binding for one app instance."""
    w3: object
    accounts: list
    contract: object
    owner: str = None
    is_owner: bool = False
    network_id: str = None

    @property
    def account(self):
        return self.accounts[0] if self.accounts else None


def load_artifact(path):
    """Loads a compiled contract artifact: {"abi": [...], "networks": {id: {"address": ...}}}."""
    with open(path, 'r') as f:
        artifact = json.load(f)
    if 'abi' not in artifact:
        raise ValueError(f"Contract artifact {path} has no ABI")
    logger.info(f"Loaded contract artifact from {path}")
    return artifact


def resolve_address(artifact, network_id, override=None):
    if override:
        return Web3.to_checksum_address(override)
    deployed = artifact.get('networks', {}).get(str(network_id))
    if not deployed or not deployed.get('address'):
        raise ContractNotDeployedError(
            f"Contract not deployed on network {network_id}; set CONTRACT_ADDRESS"
        )
    return Web3.to_checksum_address(deployed['address'])


def same_address(a, b):
    return bool(a) and bool(b) and a.lower() == b.lower()


def bind_session(w3, accounts, artifact, address_override=None):
    """Instantiates the contract and checks whether the active account owns it."""
    network_id = w3.net.version
    address = resolve_address(artifact, network_id, address_override)
    contract = w3.eth.contract(address=address, abi=artifact['abi'])
    logger.info(f"Contract instance created for address: {address}")

    owner = contract.functions.owner().call()
    is_owner = same_address(owner, accounts[0])
    logger.info(f"Contract owner: {owner} (active account is owner: {is_owner})")
    return Session(
        w3=w3,
        accounts=accounts,
        contract=contract,
        owner=owner,
        is_owner=is_owner,
        network_id=str(network_id),
    )


def open_session(config):
    """Connects to the provider named in config and binds the records contract."""
    w3, accounts = detect_provider(
        config.get('BLOCKCHAIN_NODE_URI'), config.get('LEGACY_IPC_PATH')
    )
    artifact = load_artifact(config['CONTRACT_ARTIFACT'])
    return bind_session(w3, accounts, artifact, config.get('CONTRACT_ADDRESS'))
