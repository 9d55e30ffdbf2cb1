"""
Synthetic Data Generator

Generates a reproducible toy-store chain dataset in the raw extract
layout (Title_Case headers, "$12.99 " currency strings, ISO dates):
- Products across toy categories
- Stores across Mexican cities and location types
- Daily sales with a skewed product popularity
- Inventory snapshots for most (store, product) pairs
"""

from datetime import date, timedelta
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import polars as pl
import structlog
from faker import Faker

from retail_analytics.config import get_settings

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

CATEGORIES = {
    "Toys": ["Action Figure", "Dino Egg", "Plush Bear", "Toy Robot", "Mini Car"],
    "Art & Crafts": ["Play Dough", "Magic Sand", "Glass Cleaner", "Chalk Set", "Foam Disk"],
    "Games": ["Classic Dominoes", "Deck Of Cards", "Jenga", "Mini Basketball", "Monopoly"],
    "Electronics": ["Gamer Headphones", "Rubik's Cube", "Toy Drone", "Walkie Talkie", "Kids Tablet"],
    "Sports & Outdoors": ["Splash Balls", "Water Gun", "Kite", "Jump Rope", "Frisbee"],
}

CITIES = ["Cuidad de Mexico", "Guadalajara", "Monterrey", "Puebla", "Toluca", "Hermosillo", "Merida"]
LOCATIONS = ["Downtown", "Commercial", "Residential", "Airport"]


# =============================================================================
# GENERATORS
# =============================================================================

class RetailDataGenerator:
    """
    Generate raw retail extracts.

    Example:
        generator = RetailDataGenerator(seed=7)
        extracts = generator.generate_all(n_products=20, n_stores=5, n_sales=1000)
        generator.write_extracts(extracts, "data/raw")
    """

    def __init__(self, seed: int = 42):
        self.rng = np.random.default_rng(seed)
        self.fake = Faker()
        self.fake.seed_instance(seed)

    @staticmethod
    def _money(values: np.ndarray) -> list:
        return [f"${v:.2f} " for v in values]

    def generate_products(self, n: int = 35) -> pl.DataFrame:
        """Generate n products with cost below price"""
        categories = list(CATEGORIES)
        chosen = self.rng.choice(categories, size=n)
        names = [
            f"{self.rng.choice(CATEGORIES[c])} {i + 1}" for i, c in enumerate(chosen)
        ]
        price = np.round(self.rng.uniform(2.99, 39.99, n), 2)
        cost = np.round(price * self.rng.uniform(0.45, 0.85, n), 2)

        return pl.DataFrame({
            "Product_ID": np.arange(1, n + 1),
            "Product_Name": names,
            "Product_Category": chosen,
            "Product_Cost": self._money(cost),
            "Product_Price": self._money(price),
        })

    def generate_stores(self, n: int = 50) -> pl.DataFrame:
        """Generate n stores"""
        cities = self.rng.choice(CITIES, size=n)
        open_dates = [
            self.fake.date_between(start_date=date(1992, 1, 1), end_date=date(2016, 12, 31)).isoformat()
            for _ in range(n)
        ]

        return pl.DataFrame({
            "Store_ID": np.arange(1, n + 1),
            "Store_Name": [f"Maven Toys {city} {i + 1}" for i, city in enumerate(cities)],
            "Store_City": cities,
            "Store_Location": self.rng.choice(LOCATIONS, size=n),
            "Store_Open_Date": open_dates,
        })

    def generate_sales(
        self,
        products: pl.DataFrame,
        stores: pl.DataFrame,
        n: int = 10000,
        start: date = date(2022, 1, 1),
        days: int = 365,
    ) -> pl.DataFrame:
        """Generate n sales over `days` days with Zipf-like product popularity"""
        product_ids = products["Product_ID"].to_numpy()
        store_ids = stores["Store_ID"].to_numpy()

        weights = 1.0 / np.arange(1, len(product_ids) + 1)
        weights = weights / weights.sum()

        offsets = np.sort(self.rng.integers(0, days, n))
        sale_dates = [(start + timedelta(days=int(d))).isoformat() for d in offsets]

        return pl.DataFrame({
            "Sale_ID": np.arange(1, n + 1),
            "Date": sale_dates,
            "Store_ID": self.rng.choice(store_ids, size=n),
            "Product_ID": self.rng.choice(product_ids, size=n, p=weights),
            "Units": self.rng.integers(1, 6, n),
        })

    def generate_inventory(
        self,
        products: pl.DataFrame,
        stores: pl.DataFrame,
        coverage: float = 0.9,
    ) -> pl.DataFrame:
        """Stock snapshot for roughly `coverage` of all (store, product) pairs"""
        pairs = stores.select("Store_ID").join(products.select("Product_ID"), how="cross")
        keep = self.rng.random(pairs.height) < coverage
        pairs = pairs.filter(pl.Series(keep))

        return pairs.with_columns(
            pl.Series("Stock_On_Hand", self.rng.integers(0, 50, pairs.height))
        )

    def generate_all(
        self,
        n_products: int = 35,
        n_stores: int = 50,
        n_sales: int = 10000,
        start: date = date(2022, 1, 1),
        days: int = 365,
    ) -> Dict[str, pl.DataFrame]:
        """Generate all four extracts"""
        products = self.generate_products(n_products)
        stores = self.generate_stores(n_stores)
        sales = self.generate_sales(products, stores, n_sales, start, days)
        inventory = self.generate_inventory(products, stores)

        logger.info(
            "Synthetic extracts generated",
            products=products.height,
            stores=stores.height,
            sales=sales.height,
            inventory=inventory.height,
        )
        return {
            "products": products,
            "stores": stores,
            "sales": sales,
            "inventory": inventory,
        }

    def write_extracts(
        self,
        extracts: Dict[str, pl.DataFrame],
        output_dir: Optional[str] = None,
    ) -> Path:
        """Write each extract as <name>.csv under `output_dir`"""
        target = Path(output_dir or get_settings().data_lake.raw_path)
        target.mkdir(parents=True, exist_ok=True)

        for name, df in extracts.items():
            path = target / f"{name}.csv"
            df.write_csv(path)
            logger.info("Extract written", table=name, rows=df.height, path=str(path))

        return target
