"""Core utilities shared by the clawdbot commands."""
