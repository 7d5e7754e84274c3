"""
pg_metadump -- dump the schema metadata of a PostgreSQL database.

This file is part of pg_metadump.
"""
