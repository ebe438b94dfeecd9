"""File and clipboard import/export."""
