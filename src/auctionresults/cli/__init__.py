"""
Command-line interface modules.

Provides CLI entry points for:
- scrape: Run the Domain and realestate.com.au auction results scrapers
- api_server: Start the REST API
"""
