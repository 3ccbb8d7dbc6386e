CHAIN_ID_ETHEREUM = 1
CHAIN_ID_BASE = 8453
