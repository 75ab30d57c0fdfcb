# src/scrapers/maxipali_scraper.py

"""Client for maxipali.co.cr via its VTEX catalog APIs."""

from src.models.product import Store
from src.scrapers.vtex_scraper import VtexScraper


class MaxiPaliScraper(VtexScraper):
    """MaxiPali storefront."""

    store = Store.MAXIPALI

    @property
    def base_url(self) -> str:
        return self.settings.MAXIPALI_BASE_URL
