"""Ledger APDU framing, USB HID transport framing, device models and the Ledger vault."""