"""Chatloom conversational chat service."""
