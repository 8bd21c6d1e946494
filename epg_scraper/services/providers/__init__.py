"""
Built-in EPG providers

Each module exposes a SOURCE_KEY, a match() predicate and an async handle()
coroutine.
"""
from epg_scraper.services.providers import chuan, cntv, tvmao, twmod

BUILTIN_PROVIDERS = (tvmao, cntv, chuan, twmod)

__all__ = ["BUILTIN_PROVIDERS", "chuan", "cntv", "tvmao", "twmod"]
