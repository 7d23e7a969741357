"""Data module - CRM record schemas and the repository boundary."""
