# src/scrapers/masxmenos_scraper.py

"""Client for masxmenos.cr via its VTEX catalog APIs."""

from src.models.product import Store
from src.scrapers.vtex_scraper import VtexScraper


class MasxMenosScraper(VtexScraper):
    """Mas x Menos storefront."""

    store = Store.MASXMENOS

    @property
    def base_url(self) -> str:
        return self.settings.MASXMENOS_BASE_URL
