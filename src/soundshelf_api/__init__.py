"""soundshelf-api - Music library service built on soundshelf."""
