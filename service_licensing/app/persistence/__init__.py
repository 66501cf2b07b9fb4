from .store import LicenseStore
from .postgres import PostgresLicenseStore

__all__ = ["LicenseStore", "PostgresLicenseStore"]
