import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY', 'default-secret-key')

    # Provider: HTTP(S)/WS(S) endpoint, or a node's IPC socket as the legacy fallback
    BLOCKCHAIN_NODE_URI = os.getenv('BLOCKCHAIN_NODE_URI')
    LEGACY_IPC_PATH = os.getenv('LEGACY_IPC_PATH')
    CONNECT_ON_STARTUP = True

    # Contract artifact (abi + networks map); CONTRACT_ADDRESS overrides the map
    CONTRACT_ARTIFACT = os.getenv(
        'CONTRACT_ARTIFACT', os.path.join(BASE_DIR, 'contracts', 'MedicalRecords.json')
    )
    CONTRACT_ADDRESS = os.getenv('CONTRACT_ADDRESS')

    TX_RECEIPT_TIMEOUT = int(os.getenv('TX_RECEIPT_TIMEOUT', '120'))
    TIMESTAMP_FORMAT = os.getenv('TIMESTAMP_FORMAT', '%Y-%m-%d %H:%M:%S')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # per-client UI state kept in memory
    MAX_CLIENTS = int(os.getenv('MAX_CLIENTS', '1000'))
    CLIENT_IDLE_SECONDS = int(os.getenv('CLIENT_IDLE_SECONDS', '3600'))

    BOOTSTRAP_SERVE_LOCAL = False


class TestingConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    CONNECT_ON_STARTUP = False
    SECRET_KEY = 'testing'
    TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'
