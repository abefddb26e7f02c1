import logging
from urllib.parse import urlparse

from web3 import Web3, HTTPProvider, IPCProvider, LegacyWebSocketProvider

from errors import AuthorizationDeniedError, NoProviderError

logger = logging.getLogger(__name__)

# EIP-1193 / JSON-RPC error codes
USER_REJECTED = 4001
METHOD_NOT_FOUND = -32601


def build_provider(node_uri=None, ipc_path=None):
    """Returns (provider, is_legacy) for the configured endpoint."""
    if node_uri:
        scheme = urlparse(node_uri).scheme.lower()
        if scheme in ('http', 'https'):
            return HTTPProvider(node_uri), False
        if scheme in ('ws', 'wss'):
            return LegacyWebSocketProvider(node_uri), False
        raise NoProviderError(f"Unsupported provider URI scheme: {node_uri}")
    if ipc_path:
        return IPCProvider(ipc_path), True
    raise NoProviderError("No Ethereum provider detected")


def request_accounts(w3):
    """
    Asks the provider for account access once.
    Falls back to eth_accounts on nodes that don't know eth_requestAccounts.
    """
    response = w3.provider.make_request('eth_requestAccounts', [])
    error = response.get('error')
    if error and error.get('code') == METHOD_NOT_FOUND:
        logger.debug("eth_requestAccounts not supported, using eth_accounts")
        response = w3.provider.make_request('eth_accounts', [])
        error = response.get('error')
    if error:
        logger.error(f"User denied account access: {error.get('message')}")
        raise AuthorizationDeniedError(error.get('message') or "User denied account access")

    accounts = response.get('result') or []
    if not accounts:
        raise AuthorizationDeniedError("Provider did not expose any account")
    return [Web3.to_checksum_address(account) for account in accounts]


def detect_provider(node_uri=None, ipc_path=None):
    """
    Connects to the configured provider and requests account access.
    Returns (w3, accounts). Raises NoProviderError or AuthorizationDeniedError.
    """
    provider, is_legacy = build_provider(node_uri, ipc_path)
    w3 = Web3(provider)

    try:
        connected = w3.is_connected()
    except Exception as e:
        logger.error(f"Error checking provider connection: {e}")
        connected = False
    if not connected:
        logger.warning("No Ethereum provider reachable")
        raise NoProviderError(f"No Ethereum provider reachable at {node_uri or ipc_path}")

    logger.info(f"Connected to Ethereum provider {node_uri or ipc_path}")

    if is_legacy:
        # legacy providers expose their accounts without an authorization prompt
        accounts = [Web3.to_checksum_address(a) for a in w3.eth.accounts]
        if not accounts:
            raise AuthorizationDeniedError("Provider did not expose any account")
    else:
        accounts = request_accounts(w3)

    logger.info(f"Using account: {accounts[0]}")
    return w3, accounts
