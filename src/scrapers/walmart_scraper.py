# src/scrapers/walmart_scraper.py

"""Client for walmart.co.cr (Costa Rica) via its VTEX catalog APIs."""

from src.models.product import Store
from src.scrapers.vtex_scraper import VtexScraper


class WalmartScraper(VtexScraper):
    """Walmart Costa Rica storefront."""

    store = Store.WALMART

    @property
    def base_url(self) -> str:
        return self.settings.WALMART_BASE_URL
