"""Form handling and the application controller."""
