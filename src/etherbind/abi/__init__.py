"""
ABI - Codec, registry and loaders for Ethereum contract ABIs.

Uses eth-abi for the binary format and eth-hash for Keccak-256.
"""
