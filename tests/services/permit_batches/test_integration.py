"""Integration tests against a real PostgreSQL database.

These need a scratch database. Run with:
    TEST_DATABASE_URL=postgresql://localhost/permits_test pytest -m integration
"""
import os

import pytest
from services.permit_batches.database import PostgresExecutor, connect
from services.permit_batches.sql_generator import render_insert

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not TEST_DATABASE_URL, reason="TEST_DATABASE_URL not set"),
]

CREATE_TABLE = """
CREATE TEMP TABLE construction_permits (
    id SERIAL PRIMARY KEY,
    county TEXT, street_address TEXT, city TEXT, zip_code TEXT, state TEXT,
    latitude DOUBLE PRECISION, longitude DOUBLE PRECISION, geocode_source TEXT,
    contract_amount NUMERIC, contract_date TIMESTAMPTZ,
    contractor_name TEXT, contractor_address TEXT, contractor_phone TEXT,
    permit_type TEXT, owner_name TEXT, owner_phone TEXT,
    data_hash TEXT UNIQUE
)
"""


class TestRealDatabase:
    """Rendered batches load and dedupe on data_hash."""

    def test_reload_inserts_nothing(self, permits_factory):
        with connect(TEST_DATABASE_URL) as conn:
            executor = PostgresExecutor(conn)
            executor.execute(CREATE_TABLE)
            sql = render_insert(permits_factory(10))

            assert executor.execute(sql) == 10
            assert executor.execute(sql) == 0

    def test_bad_batch_leaves_connection_usable(self, permits_factory, make_permit):
        with connect(TEST_DATABASE_URL) as conn:
            executor = PostgresExecutor(conn)
            executor.execute(CREATE_TABLE)

            with pytest.raises(Exception):
                executor.execute(render_insert([make_permit(1, **{"Contract Amount": "about 5k"})]))

            assert executor.execute(render_insert(permits_factory(3))) == 3
