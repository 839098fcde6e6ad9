"""Create the orders/services/transfers tables on the configured database."""
from sqlalchemy import inspect

from booking_api.db.database import engine, init_db

init_db()

inspector = inspect(engine)
for table in ("orders", "services", "transfers"):
    columns = inspector.get_columns(table)
    uniques = inspector.get_unique_constraints(table)
    print(f"  {table}: {len(columns)} columns, unique {[u['column_names'] for u in uniques]}")

print("\nDone.")
