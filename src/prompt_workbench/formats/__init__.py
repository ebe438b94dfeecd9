"""External prompt data formats and conversion."""
