"""
EPG Scraper

Aggregates program schedules from remote EPG providers and normalizes them
into the DIYP date-keyed shape.
"""
