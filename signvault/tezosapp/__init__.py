"""Tezos application client for Ledger devices, BIP32 paths and status codes."""