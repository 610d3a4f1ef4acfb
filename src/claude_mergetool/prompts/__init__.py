"""Prompt templates for the merge session."""
