"""
Scraper error taxonomy.

None of these escape a dispatch call: handlers and fetch units catch them
and degrade to an empty contribution.
"""


class ScraperError(Exception):
    """Base class for recoverable scraping failures"""
    pass


class MalformedQueryError(ScraperError):
    """Raised when a query matches a provider prefix but cannot be parsed"""
    pass


class FetchError(ScraperError):
    """Raised when a fetch unit gets no usable response"""
    pass


class DecodeError(ScraperError):
    """Raised when a payload is not the expected JSON structure"""
    pass
