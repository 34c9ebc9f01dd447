"""Poker settlement engine."""
