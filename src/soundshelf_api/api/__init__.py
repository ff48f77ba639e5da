"""HTTP layer for soundshelf-api."""
