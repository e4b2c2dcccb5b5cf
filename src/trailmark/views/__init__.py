"""Headless map and list views plus HTML rendering."""
