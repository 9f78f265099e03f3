"""CRM building blocks: configuration, user-statistics SQL, content metadata, notifications and welcome campaigns."""

__version__ = "0.1.0"