"""Network constants for the optional on-chain collaborators."""

# Farcaster contracts live on OP Mainnet
OPTIMISM_CHAIN_ID = 10

DEFAULT_RPC_URLS = [
    "https://mainnet.optimism.io",
    "https://optimism-rpc.publicnode.com",
]

# IdRegistry v2 (custodyOf(uint256) -> address)
ID_REGISTRY_ADDRESS = "0x00000000Fc6c5F01Fc30151999387Bb99A9f489b"

# bytes4(keccak256("isValidSignature(bytes32,bytes)"))
ERC1271_MAGIC_VALUE = bytes.fromhex("1626ba7e")
