"""
Retail Dataset Generator
Writes reproducible raw extracts (products, stores, sales, inventory)
in the layout the batch loader expects.
"""

import argparse
from datetime import date
from pathlib import Path

from retail_analytics.data.generators import RetailDataGenerator

DEFAULT_OUTPUT_DIR = Path(__file__).parent.parent / "data" / "raw"


def main():
    parser = argparse.ArgumentParser(description="Generate synthetic retail extracts")
    parser.add_argument("--output-dir", type=Path, default=DEFAULT_OUTPUT_DIR)
    parser.add_argument("--products", type=int, default=35)
    parser.add_argument("--stores", type=int, default=50)
    parser.add_argument("--sales", type=int, default=10000)
    parser.add_argument("--start", type=date.fromisoformat, default=date(2022, 1, 1),
                        help="First sale date (YYYY-MM-DD)")
    parser.add_argument("--days", type=int, default=365)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    print("=" * 60)
    print("🧸 Retail Dataset Generator")
    print("=" * 60 + "\n")

    generator = RetailDataGenerator(seed=args.seed)
    extracts = generator.generate_all(
        n_products=args.products,
        n_stores=args.stores,
        n_sales=args.sales,
        start=args.start,
        days=args.days,
    )
    output_dir = generator.write_extracts(extracts, str(args.output_dir))

    print("\n" + "=" * 60)
    print("✅ Dataset Generation Complete!")
    print("=" * 60)
    print(f"\n📁 Output: {output_dir}\n")

    for name, df in extracts.items():
        size = (output_dir / f"{name}.csv").stat().st_size / 1024
        print(f"   📄 {name}.csv: {df.height:,} rows ({size:.1f} KB)")


if __name__ == "__main__":
    main()
