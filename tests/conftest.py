"""
Test Suite Configuration
"""
from datetime import date
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
import polars as pl
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from retail_analytics.config import Settings
from retail_analytics.data.snapshot import (
    INVENTORY_SCHEMA,
    PRODUCTS_SCHEMA,
    SALES_SCHEMA,
    STORES_SCHEMA,
    RetailSnapshot,
)
from retail_analytics.database.models import Base


def make_snapshot(products, stores, sales, inventory=()) -> RetailSnapshot:
    """Build a snapshot from row tuples in canonical column order"""
    return RetailSnapshot(
        products=pl.DataFrame(list(products), schema=PRODUCTS_SCHEMA, orient="row"),
        stores=pl.DataFrame(list(stores), schema=STORES_SCHEMA, orient="row"),
        sales=pl.DataFrame(list(sales), schema=SALES_SCHEMA, orient="row"),
        inventory=pl.DataFrame(list(inventory), schema=INVENTORY_SCHEMA, orient="row"),
    )


PRODUCTS = [
    (1, "Dino Egg", "Toys", 5.00, 10.00),
    (2, "Play Dough", "Art & Crafts", 2.00, 4.00),
    (3, "Free Sticker", "Toys", 1.00, 0.00),
    (4, "Jenga", "Games", 3.00, 6.00),
]

STORES = [
    (1, "Maven Toys Guadalajara 1", "Guadalajara", "Downtown", date(2010, 1, 1)),
    (2, "Maven Toys Monterrey 1", "Monterrey", "Commercial", date(2012, 6, 15)),
]

SALES = [
    (1, date(2022, 1, 1), 1, 1, 3),
    (2, date(2022, 1, 2), 1, 1, 2),
    (3, date(2022, 1, 3), 1, 2, 4),
    (4, date(2022, 1, 5), 2, 2, 6),
    (5, date(2022, 1, 5), 2, 3, 1),
]

INVENTORY = [
    (1, 1, 0),
    (1, 2, 10),
    (2, 2, 3),
    (2, 4, 10),
    (1, 4, 5),
]


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def sample_snapshot() -> RetailSnapshot:
    """
    Two stores, four products (one never sold, one priced at zero) and
    five sales over 2022-01-01 .. 2022-01-05.
    """
    return make_snapshot(PRODUCTS, STORES, SALES, INVENTORY)


@pytest.fixture
def single_product_snapshot() -> RetailSnapshot:
    """P1 cost 5.00 price 10.00 sold 3 + 2 units in store S1"""
    return make_snapshot(
        products=[(1, "P1", "Toys", 5.00, 10.00)],
        stores=[(1, "S1", "Guadalajara", "Downtown", date(2010, 1, 1))],
        sales=[
            (1, date(2022, 3, 1), 1, 1, 3),
            (2, date(2022, 3, 2), 1, 1, 2),
        ],
    )


@pytest.fixture
def defective_snapshot() -> RetailSnapshot:
    """Sample data plus an orphan sale, a duplicated sale id and a null units value"""
    return make_snapshot(
        PRODUCTS,
        STORES,
        SALES + [
            (6, date(2022, 1, 6), 1, 99, 2),
            (6, date(2022, 1, 6), 2, 2, 1),
            (7, date(2022, 1, 7), 9, 1, None),
        ],
        INVENTORY + [(1, 1, 4)],
    )


@pytest.fixture
def raw_extracts_dir(tmp_path: Path) -> Path:
    """Raw CSV extracts with Title_Case headers and currency strings"""
    (tmp_path / "products.csv").write_text(
        "Product_ID,Product_Name,Product_Category,Product_Cost,Product_Price\n"
        "1,Dino Egg,Toys,$5.00 ,$10.00 \n"
        "2,Play Dough,Art & Crafts,$2.00 ,$4.00 \n"
    )
    (tmp_path / "stores.csv").write_text(
        "Store_ID,Store_Name,Store_City,Store_Location,Store_Open_Date\n"
        "1,Maven Toys Guadalajara 1,Guadalajara,Downtown,2010-01-01\n"
        "2,Maven Toys Monterrey 1, Monterrey ,Commercial,06/15/2012\n"
    )
    (tmp_path / "sales.csv").write_text(
        "Sale_ID,Date,Store_ID,Product_ID,Units\n"
        "1,2022-01-01,1,1,3\n"
        "2,2022-01-02,1,1,2\n"
        "3,2022-01-03,2,2,4\n"
    )
    (tmp_path / "inventory.csv").write_text(
        "Store_ID,Product_ID,Stock_On_Hand\n"
        "1,1,0\n"
        "2,2,7\n"
    )
    return tmp_path


@pytest_asyncio.fixture
async def test_engine(tmp_path: Path):
    """Create test database engine"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def snapshot_factory():
    """Factory building snapshots from canonical row tuples"""
    return make_snapshot
