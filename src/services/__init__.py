"""Vault and settings services shared by the tools."""
