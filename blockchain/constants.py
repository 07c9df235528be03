BASE_CHAIN_ID = 8453
ETHEREUM_CHAIN_ID = 1

# Chains summed for liquidity and holding rewards, in processing order
SUPPORTED_CHAIN_IDS = (BASE_CHAIN_ID, ETHEREUM_CHAIN_ID)

# Balance oracles on these chains cannot serve historical blocks; use latest
LATEST_BLOCK_ONLY_CHAIN_IDS = frozenset({ETHEREUM_CHAIN_ID})

OFFCHAIN_WALLET_ADDRESS = 'offchain'
OFFCHAIN_REWARD_CONTRACT = 'offchain:reward'
OFFCHAIN_TX_PREFIX = 'oc:'
