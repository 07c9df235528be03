"""
Django settings for the daily rewards ledger.

Values are read from the environment (or a .env file) through python-decouple.
"""
from pathlib import Path

from decouple import Csv, config

from blockchain.constants import BASE_CHAIN_ID, ETHEREUM_CHAIN_ID

from .logging import LOGGING  # noqa: F401

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = config('SECRET_KEY', default='django-insecure-local-rewards-ledger')
DEBUG = config('DEBUG', default=False, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1', cast=Csv())

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'users',
    'blockchain',
    'rewards',
]

AUTH_USER_MODEL = 'users.User'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

DATABASES = {
    'default': {
        'ENGINE': config('DB_ENGINE', default='django.db.backends.sqlite3'),
        'NAME': config('DB_NAME', default=str(BASE_DIR / 'db.sqlite3')),
        'USER': config('DB_USER', default=''),
        'PASSWORD': config('DB_PASSWORD', default=''),
        'HOST': config('DB_HOST', default=''),
        'PORT': config('DB_PORT', default=''),
    }
}

USE_TZ = True
TIME_ZONE = 'UTC'

# Celery
CELERY_BROKER_URL = config('CELERY_BROKER_URL', default='redis://localhost:6379/0')
CELERY_RESULT_BACKEND = config('CELERY_RESULT_BACKEND', default=CELERY_BROKER_URL)
CELERY_TIMEZONE = 'UTC'
CELERY_TASK_SERIALIZER = 'json'
CELERY_ACCEPT_CONTENT = ['json']

# EVM JSON-RPC endpoints used by the balance oracle and block resolver
EVM_RPC_URLS = {
    BASE_CHAIN_ID: config('BASE_RPC_URL', default='https://mainnet.base.org'),
    ETHEREUM_CHAIN_ID: config('ETHEREUM_RPC_URL', default='https://cloudflare-eth.com'),
}
EVM_RPC_TIMEOUT = config('EVM_RPC_TIMEOUT', default=15.0, cast=float)

REWARDS_TOKEN_CONTRACTS = {
    BASE_CHAIN_ID: config('BASE_TOKEN_CONTRACT', default=''),
    ETHEREUM_CHAIN_ID: config('ETHEREUM_TOKEN_CONTRACT', default=''),
}

# Reward collaborators (dotted paths, resolved by rewards.collaborators)
REWARDS_CONTRIBUTION_FEED = config('REWARDS_CONTRIBUTION_FEED', default='')
REWARDS_LIQUIDITY_SOURCE = config('REWARDS_LIQUIDITY_SOURCE', default='')
REWARDS_ONCHAIN_REGISTRY = config(
    'REWARDS_ONCHAIN_REGISTRY', default='blockchain.unique_onchain.UniqueOnChainManager'
)
REWARDS_BALANCE_ORACLE = config('REWARDS_BALANCE_ORACLE', default='blockchain.evm_client.EvmRpcClient')
REWARDS_BLOCK_RESOLVER = config('REWARDS_BLOCK_RESOLVER', default='blockchain.evm_client.EvmRpcClient')
REWARDS_TRANSACTION_SINK = config(
    'REWARDS_TRANSACTION_SINK', default='blockchain.transactions.TransactionRepository'
)
REWARDS_IDENTITY_LOOKUP = config('REWARDS_IDENTITY_LOOKUP', default='users.identity.DjangoIdentityLookup')

# Scheduled issuance only writes to the ledger when explicitly enabled
REWARDS_ISSUE_COMMIT = config('REWARDS_ISSUE_COMMIT', default=False, cast=bool)
