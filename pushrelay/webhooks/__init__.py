"""Inbound registry webhook handling."""
