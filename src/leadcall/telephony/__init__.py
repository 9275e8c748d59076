"""
Telephony package.

Keep package import side-effects to a minimum to avoid circular imports.
Do not import factory/adapters here.
"""

__all__ = [
    "interface",
    "config",
    "factory",
    "dispatcher",
    "call_log",
    "exotel_adapter",
    "twilio_adapter",
    "agent_adapter",
]
