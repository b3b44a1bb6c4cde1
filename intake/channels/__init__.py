"""Telephony adapters that translate webhooks into intake turns."""
