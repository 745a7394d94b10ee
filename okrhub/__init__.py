"""OKRHub - local OKR entity store with an outbox sync to LinkHub."""

__version__ = "0.1.5"
