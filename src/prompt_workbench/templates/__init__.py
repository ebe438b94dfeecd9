"""Placeholder scanning, template models and template processing."""
