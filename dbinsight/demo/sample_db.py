"""
Sample E-Commerce Database Setup

Creates a small SQLite database for demonstrations and tests. The
content is generated from a seeded random source, so the same seed
always yields the same database.
"""

from datetime import date, timedelta
from pathlib import Path
import logging
import random
import sqlite3

logger = logging.getLogger(__name__)

CUSTOMER_COUNT = 50
PRODUCT_COUNT = 30
ORDER_COUNT = 200
REVIEW_COUNT = 120

# Children before parents so DROP TABLE never trips a foreign key
TABLES = ["reviews", "order_items", "orders", "products", "customers"]

CITIES = ["Lisbon", "Porto", "Madrid", "Berlin", "Paris", "Rome", "Vienna", None]
CATEGORIES = ["books", "electronics", "garden", "toys", "kitchen", None]
ORDER_STATUSES = ["delivered", "shipped", "processing", "canceled"]
REVIEW_COMMENTS = [
    "Great product",
    "Arrived late",
    "As described",
    "Would buy again",
    None,
]

SCHEMA = [
    """
    CREATE TABLE customers (
        customer_id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT,
        city TEXT,
        signup_date TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE products (
        product_id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        category TEXT,
        price REAL NOT NULL,
        weight_grams INTEGER
    )
    """,
    """
    CREATE TABLE orders (
        order_id INTEGER PRIMARY KEY,
        customer_id INTEGER NOT NULL REFERENCES customers(customer_id),
        status TEXT NOT NULL,
        order_date TEXT NOT NULL,
        total_amount REAL
    )
    """,
    """
    CREATE TABLE order_items (
        order_id INTEGER NOT NULL REFERENCES orders(order_id),
        product_id INTEGER NOT NULL REFERENCES products(product_id),
        quantity INTEGER NOT NULL,
        unit_price REAL NOT NULL,
        PRIMARY KEY (order_id, product_id)
    )
    """,
    """
    CREATE TABLE reviews (
        review_id INTEGER PRIMARY KEY,
        order_id INTEGER REFERENCES orders(order_id),
        score INTEGER NOT NULL,
        comment TEXT
    )
    """,
    "CREATE INDEX idx_orders_customer ON orders(customer_id)",
]


def random_date(rng: random.Random, start: date = date(2023, 1, 1), days: int = 365) -> str:
    """ISO date within `days` of `start`."""
    return (start + timedelta(days=rng.randint(0, days))).isoformat()


def create_sample_database(db_path: str = "./data/sample.db", seed: int = 42) -> str:
    """
    Create and populate the sample e-commerce database.

    The database contains 5 tables:
    1. customers - Customer contact details (some emails and cities missing)
    2. products - Product catalog
    3. orders - Orders placed by customers
    4. order_items - Products within each order (composite primary key)
    5. reviews - Customer reviews of orders

    Args:
        db_path: Target SQLite file; existing sample tables are replaced
        seed: Seed for the random source

    Returns:
        The database path
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    rng = random.Random(seed)

    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.cursor()

        for table in TABLES:
            cursor.execute(f"DROP TABLE IF EXISTS {table}")
        for statement in SCHEMA:
            cursor.execute(statement)

        logger.info(f"Populating sample database at {db_path}")

        for customer_id in range(1, CUSTOMER_COUNT + 1):
            email = f"customer{customer_id}@example.com" if rng.random() > 0.2 else None
            cursor.execute(
                "INSERT INTO customers VALUES (?, ?, ?, ?, ?)",
                (
                    customer_id,
                    f"Customer {customer_id}",
                    email,
                    rng.choice(CITIES),
                    random_date(rng, date(2022, 1, 1)),
                ),
            )

        prices = {}
        for product_id in range(1, PRODUCT_COUNT + 1):
            price = round(rng.uniform(5, 250), 2)
            prices[product_id] = price
            cursor.execute(
                "INSERT INTO products VALUES (?, ?, ?, ?, ?)",
                (
                    product_id,
                    f"Product {product_id}",
                    rng.choice(CATEGORIES),
                    price,
                    rng.randint(50, 5000) if rng.random() > 0.1 else None,
                ),
            )

        for order_id in range(1, ORDER_COUNT + 1):
            status = rng.choice(ORDER_STATUSES)
            product_ids = rng.sample(range(1, PRODUCT_COUNT + 1), rng.randint(1, 4))

            total = 0.0
            for product_id in product_ids:
                quantity = rng.randint(1, 5)
                total += quantity * prices[product_id]
                cursor.execute(
                    "INSERT INTO order_items VALUES (?, ?, ?, ?)",
                    (order_id, product_id, quantity, prices[product_id]),
                )

            cursor.execute(
                "INSERT INTO orders VALUES (?, ?, ?, ?, ?)",
                (
                    order_id,
                    rng.randint(1, CUSTOMER_COUNT),
                    status,
                    random_date(rng),
                    None if status == "canceled" else round(total, 2),
                ),
            )

        reviewed_orders = rng.sample(range(1, ORDER_COUNT + 1), REVIEW_COUNT)
        for review_id, order_id in enumerate(reviewed_orders, start=1):
            score = rng.choices([1, 2, 3, 4, 5], weights=[0.05, 0.05, 0.1, 0.3, 0.5])[0]
            cursor.execute(
                "INSERT INTO reviews VALUES (?, ?, ?, ?)",
                (review_id, order_id, score, rng.choice(REVIEW_COMMENTS)),
            )

        conn.commit()
    finally:
        conn.close()

    logger.info(f"Sample database created: {db_path}")
    return db_path


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_sample_database()
