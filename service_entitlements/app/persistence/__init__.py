"""
Persistence package: PostgreSQL storage for tenant plans, toggle rows and staff grants.
"""

from .postgres import PostgreSQLPersistence
