"""Handlers for the top-level clawdbot commands."""
