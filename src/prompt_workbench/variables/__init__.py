"""Variable namespace management and persistence."""
