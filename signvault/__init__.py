"""Key vault backends for a Tezos remote signer: AWS KMS and Ledger devices."""

__version__ = "0.1.0"