"""Speedrun Ethereum API."""
