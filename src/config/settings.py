# src/config/settings.py

"""Central configuration for the grocery_compare engine."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the grocery_compare engine."""

    # --- Requests ---
    SEARCH_TIMEOUT: int = 10            # Interactive search calls
    LOOKUP_TIMEOUT: int = 15            # Barcode lookups
    BULK_TIMEOUT: int = 60              # Catalog dump (scrape-style)
    STORE_BRANCH_TIMEOUT: float = 45.0  # Ceiling for one store branch
    REQUEST_DELAY: float = 0.5          # Base backoff between retries
    MAX_RETRIES: int = 2                # Attempts per transport
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 50             # VTEX caps _from/_to windows at 50
    CURRENCY: str = "CRC"

    # --- Resilience ---
    CIRCUIT_BREAKER_THRESHOLD: int = 3  # Consecutive failures to trip
    CIRCUIT_BREAKER_COOLDOWN: float = 60.0
    MAX_DELAY_MULTIPLIER: int = 8       # Cap for adaptive backoff

    # --- Relevance / reformulation ---
    MIN_KEYWORD_LENGTH: int = 3         # Tokens must be longer than 2
    MAX_REFORMULATIONS: int = 3
    STOPWORDS: frozenset[str] = frozenset({
        "de", "del", "la", "las", "el", "los", "con", "sin",
        "en", "y", "para", "por", "the", "and", "with", "of",
    })

    # --- Similarity (empirically tuned, keep as configuration) ---
    SIMILARITY_NAME_WEIGHT: float = 0.60
    SIMILARITY_BRAND_BONUS: float = 20.0
    SIMILARITY_MEASUREMENT_BONUS: float = 15.0
    SIMILARITY_CATEGORY_BONUS: float = 10.0
    SIMILARITY_DESCRIPTION_WEIGHT: float = 0.10
    SIMILARITY_COFFEE_MULTIPLIER: float = 1.2
    SIMILARITY_MEASUREMENT_TOLERANCE: float = 0.05
    SIMILARITY_PARTIAL_TOKEN_CREDIT: float = 0.5
    MATCH_THRESHOLD: int = 45

    CATEGORY_KEYWORDS: dict[str, list[str]] = {
        "coffee": ["cafe", "coffee", "espresso"],
        "rice": ["arroz", "rice"],
        "beans": ["frijol", "frijoles", "beans"],
        "milk": ["leche", "milk"],
        "sugar": ["azucar", "sugar"],
        "oil": ["aceite", "oil"],
        "eggs": ["huevo", "huevos", "eggs"],
        "bread": ["pan", "bread"],
        "pasta": ["pasta", "spaghetti", "macarrones"],
        "tuna": ["atun", "tuna"],
        "cheese": ["queso", "cheese"],
        "butter": ["mantequilla", "butter"],
        "detergent": ["detergente", "detergent"],
    }

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json, text/plain, */*",
        "Accept-Language": "es-CR,es;q=0.9,en;q=0.8",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
        "sec-ch-ua": (
            '"Google Chrome";v="131", '
            '"Chromium";v="131", '
            '"Not_A Brand";v="24"'
        ),
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
        "sec-fetch-dest": "empty",
        "sec-fetch-mode": "cors",
        "sec-fetch-site": "same-origin",
    }

    # --- Store endpoints ---
    WALMART_BASE_URL: str = os.getenv(
        "WALMART_BASE_URL", "https://www.walmart.co.cr"
    )
    MAXIPALI_BASE_URL: str = os.getenv(
        "MAXIPALI_BASE_URL", "https://www.maxipali.co.cr"
    )
    MASXMENOS_BASE_URL: str = os.getenv(
        "MASXMENOS_BASE_URL", "https://www.masxmenos.cr"
    )
    AUTOMERCADO_BASE_URL: str = "https://www.automercado.cr"
    AUTOMERCADO_ALGOLIA_APP_ID: str = os.getenv(
        "AUTOMERCADO_ALGOLIA_APP_ID", ""
    )
    AUTOMERCADO_ALGOLIA_API_KEY: str = os.getenv(
        "AUTOMERCADO_ALGOLIA_API_KEY", ""
    )
    AUTOMERCADO_ALGOLIA_INDEX: str = os.getenv(
        "AUTOMERCADO_ALGOLIA_INDEX", "Product_CatalogueV2"
    )
    AUTOMERCADO_STORE_ID: str = os.getenv(
        "AUTOMERCADO_STORE_ID", "06"
    )
    AUTOMERCADO_MAX_HITS_PER_PAGE: int = 1000

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    RESULTS_DIR: Path = BASE_DIR / "results"
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Sources (fixed order drives tie breaking and output) ---
    AVAILABLE_SOURCES: list[dict[str, str]] = [
        {
            "id": "walmart",
            "label": "Walmart",
            "scraper": "src.scrapers.walmart_scraper.WalmartScraper",
        },
        {
            "id": "maxipali",
            "label": "MaxiPali",
            "scraper": "src.scrapers.maxipali_scraper.MaxiPaliScraper",
        },
        {
            "id": "masxmenos",
            "label": "Mas x Menos",
            "scraper": "src.scrapers.masxmenos_scraper.MasxMenosScraper",
        },
        {
            "id": "automercado",
            "label": "Automercado",
            "scraper": (
                "src.scrapers.automercado_scraper.AutomercadoScraper"
            ),
        },
    ]
