"""Hook execution toolkit: guards, validators and trackers for agent hosts."""

__version__ = "0.3.0"
