from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Arkive Back-Office Sync"
    LOG_LEVEL: str = "INFO"

    # Currency label used on receipt statements
    CURRENCY: str = "PKR"

    # Collections hosted per tenant
    DEFAULT_COLLECTIONS: List[str] = ["receipts", "clients", "employees", "tasks"]

    # Rows rendered in the PDF statement
    REPORT_MAX_ROWS: int = 100

    # Paths reachable without a tenant header
    PUBLIC_PATHS: List[str] = ["/health", "/docs", "/openapi.json", "/redoc"]

    class Config:
        case_sensitive = True

settings = Settings()
