"""Command-line interface for the WebDriver client."""
